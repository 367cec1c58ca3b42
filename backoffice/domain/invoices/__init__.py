"""Invoice domain - invoices (facturas) and their numbering"""
