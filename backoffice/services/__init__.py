"""Service layer - external integrations and rendering"""
