from functools import wraps
import time
import logging

from django.conf import settings

logger = logging.getLogger(__name__)


def monitor_query_performance(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        try:
            return func(*args, **kwargs)
        finally:
            execution_time = time.monotonic() - start_time
            threshold = getattr(settings, 'KPI_SLOW_QUERY_SECONDS', 1.0)
            if execution_time > threshold:  # Log slow queries
                logger.warning(f"Slow query: {func.__name__} took {execution_time:.2f}s")
    return wrapper
