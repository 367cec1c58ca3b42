"""Client domain - client records and ownership checks"""
