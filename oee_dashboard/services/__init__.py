"""
OEE Floor Dashboard - Services Package

This package contains the metric calculator, scope resolver, aggregation
engine, maintenance and benchmark analytics, the record store and the
dashboard service that composes them.
"""

from .dashboard_service import DashboardService, DashboardSession
from .record_store import RecordStore

__all__ = ["DashboardService", "DashboardSession", "RecordStore"]
