"""Widget settings storage and lookup"""
from typing import Any, Dict, Optional
from supabase import Client
import logging

from sitewise.models.widget import (
    PUBLIC_SETTINGS_COLUMNS,
    DashboardWidgetSettings,
    WidgetSettings,
    WidgetSettingsUpdate
)
from sitewise.utils.retry import retry_supabase_query

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "widget_settings"


class SettingsLookupError(Exception):
    """The settings store could not be queried (as opposed to: no such widget)"""


def _first_row(result) -> Optional[Dict[str, Any]]:
    # maybe_single() yields None or an empty response when nothing matches
    if result is None:
        return None
    data = result.data
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


def fetch_public_settings(supabase: Client, widget_id: str) -> Optional[WidgetSettings]:
    """
    Resolve a public widget identifier to its display configuration.

    Returns None when no widget has that identifier. Raises
    SettingsLookupError when the store itself failed.
    """
    try:
        result = retry_supabase_query(
            lambda: supabase.table(SETTINGS_TABLE).select(
                PUBLIC_SETTINGS_COLUMNS
            ).eq("id", widget_id).maybe_single().execute()
        )
    except Exception as e:
        logger.error(f"Error fetching widget settings for {widget_id}: {e}")
        raise SettingsLookupError(str(e)) from e

    row = _first_row(result)
    if row is None:
        return None
    return WidgetSettings(**row)


def get_owner_settings(supabase: Client, user_id: str) -> DashboardWidgetSettings:
    """Get the dashboard user's widget, creating one with defaults on first use"""
    result = supabase.table(SETTINGS_TABLE).select(
        f"id,{PUBLIC_SETTINGS_COLUMNS}"
    ).eq("user_id", user_id).limit(1).execute()

    row = _first_row(result)
    if row is None:
        defaults = WidgetSettingsUpdate().model_dump(mode="json")
        created = supabase.table(SETTINGS_TABLE).insert({
            "user_id": user_id,
            **defaults
        }).execute()
        row = _first_row(created)
        logger.info(f"Created default widget settings for user {user_id}")

    return DashboardWidgetSettings(**row)


def save_owner_settings(
    supabase: Client,
    user_id: str,
    update: WidgetSettingsUpdate
) -> DashboardWidgetSettings:
    """Persist the dashboard user's widget settings and return the stored row"""
    existing = get_owner_settings(supabase, user_id)

    result = supabase.table(SETTINGS_TABLE).update(
        update.model_dump(mode="json")
    ).eq("id", existing.id).eq("user_id", user_id).execute()

    row = _first_row(result)
    if row is None:
        raise SettingsLookupError(f"Widget {existing.id} could not be updated")

    logger.info(f"Saved widget settings {existing.id} for user {user_id}")
    return DashboardWidgetSettings(**row)
