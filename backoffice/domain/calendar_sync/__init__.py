"""Calendar sync domain - job ↔ Google Calendar event reconciliation"""
