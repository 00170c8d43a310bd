"""
OEE Floor Dashboard - Models Package

Pydantic models for records, master data and dashboard views.
"""
