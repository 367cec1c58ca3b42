"""Dashboard domain - monthly business summary"""
