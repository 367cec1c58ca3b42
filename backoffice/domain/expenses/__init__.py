"""Expense domain - expenses and their categories"""
