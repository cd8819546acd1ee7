"""Dashboard endpoints - widget settings and embed code for signed-in users"""
from fastapi import APIRouter, HTTPException, Depends
from supabase import Client
from typing import Dict
import logging

from sitewise.config import get_settings
from sitewise.database import get_supabase_admin
from sitewise.middleware.auth import get_current_user
from sitewise.models.widget import (
    DashboardWidgetSettings,
    EmbedCodeResponse,
    WidgetSettingsUpdate
)
from sitewise.services.loader_service import loader_url, render_embed_snippet
from sitewise.services.settings_service import get_owner_settings, save_owner_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/widget-settings", response_model=DashboardWidgetSettings)
async def get_widget_settings(
    auth_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase_admin)
):
    """Get the signed-in user's widget settings"""
    try:
        return get_owner_settings(supabase, auth_data["user_id"])
    except Exception as e:
        logger.error(f"Error loading widget settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to load widget settings")


@router.put("/widget-settings", response_model=DashboardWidgetSettings)
async def update_widget_settings(
    update: WidgetSettingsUpdate,
    auth_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase_admin)
):
    """Save the signed-in user's widget settings"""
    try:
        return save_owner_settings(supabase, auth_data["user_id"], update)
    except Exception as e:
        logger.error(f"Error saving widget settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to save widget settings")


@router.get("/embed-code", response_model=EmbedCodeResponse)
async def get_embed_code(
    auth_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase_admin)
):
    """Embed snippet for the signed-in user's widget"""
    try:
        widget = get_owner_settings(supabase, auth_data["user_id"])
    except Exception as e:
        logger.error(f"Error loading widget for embed code: {e}")
        raise HTTPException(status_code=500, detail="Failed to load widget")

    api_url = get_settings().public_api_url
    return EmbedCodeResponse(
        widget_id=widget.id,
        loader_url=loader_url(api_url, widget.id),
        script=render_embed_snippet(api_url, widget.id)
    )
