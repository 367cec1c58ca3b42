"""Back office API for a cleaning company"""
