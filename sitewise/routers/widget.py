"""Widget endpoints - public, used by embedded widgets on customer websites"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, Response
from supabase import Client
from typing import Optional
import logging

from sitewise.config import get_settings
from sitewise.database import get_supabase_admin
from sitewise.models.chat import RenderMessageRequest, RenderMessageResponse
from sitewise.models.widget import WidgetPosition, WidgetSettingsResponse
from sitewise.services.loader_service import render_loader_script
from sitewise.services.page_service import EMPTY_PAGE, normalize_origin, render_widget_page
from sitewise.services.settings_service import SettingsLookupError, fetch_public_settings
from sitewise.utils.formatting import render_markdown

logger = logging.getLogger(__name__)
router = APIRouter()
page_router = APIRouter()

# Dashboard edits must show up on the very next widget load
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/settings", response_model=WidgetSettingsResponse)
async def get_public_widget_settings(
    widget_id: Optional[str] = Query(None, alias="id"),
    supabase: Client = Depends(get_supabase_admin)
):
    """
    Get widget display settings (PUBLIC endpoint - no auth required)
    Only the non-sensitive rendering columns are returned
    """
    if not widget_id:
        return JSONResponse(status_code=400, content={"error": "Widget ID required"})

    try:
        settings = fetch_public_settings(supabase, widget_id)
    except SettingsLookupError:
        return JSONResponse(status_code=500, content={"error": "Failed to load widget settings"})

    if settings is None:
        return JSONResponse(status_code=404, content={"error": "Widget not found"})

    return JSONResponse(
        content=WidgetSettingsResponse(settings=settings).model_dump(),
        headers=NO_CACHE_HEADERS
    )


@router.post("/render-message", response_model=RenderMessageResponse)
async def render_message(request: RenderMessageRequest):
    """Render a finished assistant reply as HTML (PUBLIC endpoint)"""
    return RenderMessageResponse(html=render_markdown(request.content))


@router.get("/loader.js")
async def get_loader_script(
    widget_id: Optional[str] = Query(None, alias="id"),
    supabase: Client = Depends(get_supabase_admin)
):
    """
    Serve the embed loader script (PUBLIC endpoint)
    This is the script customers add to their websites
    """
    if not widget_id:
        return Response(content="Widget ID required", status_code=400, media_type="text/plain")

    app_settings = get_settings()

    # Anchoring only; an unknown widget still gets a script whose iframe renders nothing
    position = WidgetPosition.BOTTOM_RIGHT
    try:
        widget_settings = fetch_public_settings(supabase, widget_id)
        if widget_settings is not None:
            position = WidgetPosition.resolve(widget_settings.position)
    except SettingsLookupError:
        logger.warning(f"Serving loader for {widget_id} with default position")

    script = render_loader_script(
        widget_id,
        base_url=app_settings.widget_base_url,
        prefix=app_settings.widget_message_prefix,
        global_name=app_settings.widget_global_name,
        position=position
    )

    return Response(
        content=script,
        media_type="application/javascript",
        headers={"Cache-Control": "public, max-age=3600"}
    )


@page_router.get("/widget/{widget_id}", response_class=HTMLResponse)
async def get_widget_page(
    widget_id: str,
    origin: Optional[str] = None,
    supabase: Client = Depends(get_supabase_admin)
):
    """
    Widget page loaded inside the host page's iframe
    Renders transparently; lookup failures render nothing visible
    """
    app_settings = get_settings()

    try:
        settings = fetch_public_settings(supabase, widget_id)
    except SettingsLookupError:
        settings = None

    if settings is None:
        return HTMLResponse(content=EMPTY_PAGE, headers=NO_CACHE_HEADERS)

    html = render_widget_page(
        settings,
        parent_origin=normalize_origin(origin),
        prefix=app_settings.widget_message_prefix,
        widget_id=widget_id,
        api_url=app_settings.public_api_url
    )
    return HTMLResponse(content=html, headers=NO_CACHE_HEADERS)
