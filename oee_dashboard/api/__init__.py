"""
OEE Floor Dashboard - API Package

HTTP surface of the dashboard engine.
"""
