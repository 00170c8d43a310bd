"""
OEE Floor Dashboard - Backend Package

Aggregation and derived-metrics engine for the OEE floor dashboard.
"""
