"""
OEE Floor Dashboard - Monitoring Package

Prometheus collectors for the dashboard engine.
"""
