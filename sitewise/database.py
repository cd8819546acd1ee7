"""Database connection and utilities"""
from functools import lru_cache
from supabase import create_client, Client
from sitewise.config import get_settings


@lru_cache()
def get_supabase_admin() -> Client:
    """
    Service role client (bypasses RLS - use carefully)

    Created on first use and shared for the process lifetime. Routes take it
    as a dependency so tests can swap in a fake.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key
    )
