"""AI service for the LLM gateway integration"""
import httpx
from typing import AsyncIterator, List, Dict, Any, Optional
from supabase import Client
from sitewise.config import get_settings
from sitewise.models.chat import ChatMessage
from sitewise.utils.sse import SSEDecoder, DONE, format_event
import logging

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Keep your answers concise, helpful, and professional."
)

KNOWLEDGE_BASE_PROMPT = """You are a helpful support assistant for this website. You MUST answer questions ONLY based on the knowledge base provided below. Do NOT mention any pricing plans, products, or services that are not in the knowledge base. Do NOT try to sell anything. Simply help users find information from this website.

If the user asks about something not covered in the knowledge base, politely say you don't have that specific information and offer to help with something else from the website.

KNOWLEDGE BASE:
{content}"""

MAX_CONTENT_SOURCES = 5

# Gateway status -> (status returned to the widget, message)
GATEWAY_ERRORS = {
    429: (429, "Rate limits exceeded, please try again later."),
    402: (402, "Payment required, please add funds to your AI workspace."),
}


class GatewayError(Exception):
    """The LLM gateway refused or failed the request"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def get_knowledge_base(supabase: Client, widget_id: str) -> Optional[str]:
    """
    Collect the widget owner's crawled/uploaded content as prompt context

    Returns None when the widget is unknown or its owner has no completed
    content sources.
    """
    widget_result = supabase.table("widget_settings").select(
        "user_id"
    ).eq("id", widget_id).maybe_single().execute()

    widget = widget_result.data if widget_result is not None else None
    if not widget or not widget.get("user_id"):
        return None

    sources_result = supabase.table("content_sources").select(
        "content, name"
    ).eq("user_id", widget["user_id"]).eq("status", "completed").limit(
        MAX_CONTENT_SOURCES
    ).execute()

    sections = [
        f"### {source['name']}\n{source['content']}"
        for source in (sources_result.data or [])
        if source.get("content")
    ]
    logger.info(f"Found {len(sections)} content sources for widget {widget_id}")
    return "\n\n".join(sections) or None


def build_system_prompt(
    supabase: Optional[Client],
    widget_id: Optional[str] = None,
    custom_prompt: Optional[str] = None
) -> str:
    """
    Pick the system prompt for a chat request

    A knowledge base, when the widget has one, wins over the owner's custom
    instructions so generic instructions can't override site content.
    """
    if widget_id and supabase is not None:
        try:
            knowledge_base = get_knowledge_base(supabase, widget_id)
        except Exception as e:
            # Continue without content context
            logger.error(f"Error fetching content for widget {widget_id}: {e}")
            knowledge_base = None

        if knowledge_base:
            return KNOWLEDGE_BASE_PROMPT.format(content=knowledge_base)

    if custom_prompt:
        return custom_prompt
    return DEFAULT_SYSTEM_PROMPT


def create_gateway_client() -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(timeout=settings.llm_timeout_seconds)


async def open_gateway_stream(
    client: httpx.AsyncClient,
    messages: List[ChatMessage],
    system_prompt: str
) -> httpx.Response:
    """
    Start a streaming chat completion on the gateway

    Returns the open response once the gateway accepted the request. The
    caller owns the response and must close it.

    Raises:
        GatewayError: missing key or non-2xx gateway status
    """
    settings = get_settings()
    if not settings.llm_gateway_api_key:
        raise GatewayError(500, "LLM gateway API key is not configured")

    payload: Dict[str, Any] = {
        "model": settings.llm_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            *[message.model_dump() for message in messages]
        ],
        "stream": True
    }

    request = client.build_request(
        "POST",
        settings.llm_gateway_url,
        headers={
            "Authorization": f"Bearer {settings.llm_gateway_api_key}",
            "Content-Type": "application/json"
        },
        json=payload
    )
    response = await client.send(request, stream=True)

    if response.is_success:
        return response

    error_text = (await response.aread()).decode(errors="replace")
    await response.aclose()
    logger.error(f"AI gateway error: {response.status_code} {error_text[:500]}")

    status_code, message = GATEWAY_ERRORS.get(
        response.status_code, (500, "AI gateway error")
    )
    raise GatewayError(status_code, message)


def extract_delta(chunk: Any) -> Optional[str]:
    """Text delta of one OpenAI-style streaming chunk, if it carries any"""
    if not isinstance(chunk, dict):
        return None
    choices = chunk.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) and content else None


async def relay_deltas(response: httpx.Response) -> AsyncIterator[str]:
    """
    Re-frame the gateway stream as the widget's `{"content": ...}` events

    Ends with the [DONE] sentinel when the gateway stream completes. If the
    gateway connection drops, the error propagates and the client connection
    is aborted instead, so the widget sees a failure rather than a short answer.
    """
    decoder = SSEDecoder()
    try:
        async for chunk in response.aiter_text():
            for payload in decoder.feed(chunk):
                delta = extract_delta(payload)
                if delta:
                    yield format_event({"content": delta})
        for payload in decoder.flush():
            delta = extract_delta(payload)
            if delta:
                yield format_event({"content": delta})
    except httpx.HTTPError as e:
        logger.error(f"AI gateway stream interrupted: {e}")
        raise
    finally:
        await response.aclose()

    yield format_event(DONE)
