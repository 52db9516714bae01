"""
PharmaSave Backend Application Package
"""
