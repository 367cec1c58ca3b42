"""Job domain - scheduled services, completion into invoices and recurrences"""
