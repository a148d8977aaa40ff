"""
Query Performance Monitoring Middleware

Counts and times database queries per request, logs slow queries and
adds X-Query-Count / X-Query-Time / X-Total-Time response headers.

Thresholds come from SLOW_QUERY_THRESHOLD_SECONDS (logged as ERROR) and
WARN_QUERY_THRESHOLD_SECONDS (logged as WARNING).
"""
import time
import logging
from contextvars import ContextVar
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy import event
from sqlalchemy.engine import Engine

from gsms.core.config import settings
from gsms.logging_config import get_logger

logger = get_logger(__name__)


class RequestQueryStats:
    """Query counters for the request being served"""

    def __init__(self):
        self.count = 0
        self.total_time = 0.0
        self.slow_queries = []

    def record(self, statement: str, duration: float) -> None:
        self.count += 1
        self.total_time += duration
        if duration > settings.WARN_QUERY_THRESHOLD_SECONDS:
            self.slow_queries.append((statement, duration))


_current_stats: ContextVar[Optional[RequestQueryStats]] = ContextVar("query_stats", default=None)


class QueryPerformanceMonitor(BaseHTTPMiddleware):
    """
    Middleware to monitor query performance during HTTP requests.

    Tracks:
    - Total query count per request
    - Total query time per request
    - Individual slow queries
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        stats = RequestQueryStats()
        token = _current_stats.set(stats)

        start_time = time.time()
        try:
            response = await call_next(request)
        finally:
            _current_stats.reset(token)
        total_time = time.time() - start_time

        if stats.total_time > settings.WARN_QUERY_THRESHOLD_SECONDS or stats.slow_queries:
            log_level = (
                logging.ERROR
                if stats.total_time > settings.SLOW_QUERY_THRESHOLD_SECONDS
                else logging.WARNING
            )
            logger.log(
                log_level,
                f"Request performance: {request.method} {request.url.path} | "
                f"Total: {total_time:.3f}s | Queries: {stats.count} ({stats.total_time:.3f}s) | "
                f"Slow queries: {len(stats.slow_queries)}"
            )

        response.headers["X-Query-Count"] = str(stats.count)
        response.headers["X-Query-Time"] = f"{stats.total_time:.3f}"
        response.headers["X-Total-Time"] = f"{total_time:.3f}"
        return response


def setup_query_logging(engine: Engine):
    """
    Set up SQLAlchemy event listeners for query performance tracking.

    Call once per engine during application startup.
    """

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)

        if total > settings.SLOW_QUERY_THRESHOLD_SECONDS:
            logger.error(
                f"SLOW QUERY ({total:.3f}s): {statement[:500]}{'...' if len(statement) > 500 else ''}"
            )
        elif total > settings.WARN_QUERY_THRESHOLD_SECONDS:
            logger.warning(
                f"Slow query ({total:.3f}s): {statement[:200]}{'...' if len(statement) > 200 else ''}"
            )

        stats = _current_stats.get()
        if stats is not None:
            stats.record(statement, total)
