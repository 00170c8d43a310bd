"""
OEE Floor Dashboard - API v1 Routers

Version 1 routers for dashboard reads and record mutations.
"""
