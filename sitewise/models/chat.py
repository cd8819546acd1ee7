"""Chat-related Pydantic models"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal


class ChatMessage(BaseModel):
    """One conversation entry, as exchanged between widget and backend"""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request body for the streaming chat proxy"""
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage] = Field(..., description="Full conversation so far, oldest first")
    widget_id: Optional[str] = Field(None, alias="widgetId", description="Public widget identifier")
    system_prompt: Optional[str] = Field(None, alias="systemPrompt", description="Custom AI instructions")


class RenderMessageRequest(BaseModel):
    """A finished assistant reply to render for display"""
    content: str = Field(..., max_length=20000)


class RenderMessageResponse(BaseModel):
    html: str
