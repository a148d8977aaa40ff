"""
Middleware package for the GSMS backend.
"""
from .query_monitor import QueryPerformanceMonitor, setup_query_logging

__all__ = ["QueryPerformanceMonitor", "setup_query_logging"]
