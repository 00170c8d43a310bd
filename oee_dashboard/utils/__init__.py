"""
OEE Floor Dashboard - Utilities Package

Shared exception hierarchy.
"""
