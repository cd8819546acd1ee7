"""Chat endpoint - streams assistant replies to the widget"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from supabase import Client
import logging

from sitewise.database import get_supabase_admin
from sitewise.models.chat import ChatRequest
from sitewise.services import ai_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("")
async def stream_chat(
    request: ChatRequest,
    supabase: Client = Depends(get_supabase_admin)
):
    """
    Proxy a widget conversation to the LLM gateway (PUBLIC endpoint)

    Responds with text/event-stream frames `data: {"content": "<delta>"}`
    ending in `data: [DONE]`, or a JSON `{error}` body if the gateway
    refused the request.
    """
    if request.widget_id:
        logger.info(f"Chat request for widget {request.widget_id}")

    system_prompt = ai_service.build_system_prompt(
        supabase,
        widget_id=request.widget_id,
        custom_prompt=request.system_prompt
    )

    client = ai_service.create_gateway_client()
    try:
        response = await ai_service.open_gateway_stream(client, request.messages, system_prompt)
    except ai_service.GatewayError as e:
        await client.aclose()
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        await client.aclose()
        logger.error(f"Chat error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error"})

    return StreamingResponse(
        ai_service.relay_deltas(response),
        media_type="text/event-stream",
        background=BackgroundTask(client.aclose)
    )
