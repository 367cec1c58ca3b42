"""HTTP routes outside the domain packages"""
