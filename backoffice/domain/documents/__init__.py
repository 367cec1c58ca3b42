"""Shared pieces of the quote and invoice engine: numbering, line items, totals"""
