"""
Retry utility for handling transient database connection errors.
Settings lookups run on every widget load, so a dropped keep-alive
connection must not turn into a missing widget.
"""
import time
import logging
from typing import Callable, Any

logger = logging.getLogger(__name__)


def is_connection_reset(error: Exception) -> bool:
    """True for the 'connection reset by peer' family of errors"""
    if isinstance(error, ConnectionResetError):
        return True
    message = str(error).lower()
    return "connection reset" in message or "errno 104" in message


def retry_supabase_query(
    query_func: Callable[[], Any],
    max_retries: int = 3,
    base_delay: float = 0.5
) -> Any:
    """
    Execute a Supabase query, retrying when the connection was reset.

    Usage:
        result = retry_supabase_query(
            lambda: supabase.table("widget_settings").select("*").execute()
        )

    Any other error is raised immediately.
    """
    attempt = 0
    while True:
        try:
            return query_func()
        except Exception as e:
            if not is_connection_reset(e) or attempt >= max_retries:
                raise
            delay = min(base_delay * (2 ** attempt), 4.0)
            attempt += 1
            logger.warning(
                f"Supabase connection reset, retry {attempt}/{max_retries}. "
                f"Waiting {delay}s..."
            )
            time.sleep(delay)
