"""Quote domain - quotes (presupuestos), status rules and conversion to invoices"""
