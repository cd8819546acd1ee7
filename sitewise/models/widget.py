"""Widget-related Pydantic models"""
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional
import re

DEFAULT_PRIMARY_COLOR = "#2563eb"
DEFAULT_TEXT_COLOR = "#ffffff"
DEFAULT_HEADER_TITLE = "Chat Assistant"
DEFAULT_WELCOME_MESSAGE = "Hi! How can I help you today?"

# Columns safe to expose to anonymous visitors
PUBLIC_SETTINGS_COLUMNS = (
    "header_title,welcome_message,ai_instructions,position,"
    "widget_template,primary_color,text_color"
)

HEX_COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


class WidgetTemplate(str, Enum):
    """Visual style of the embedded widget"""
    BUBBLE = "bubble"
    PANEL = "panel"
    CHATGPT = "chatgpt"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "WidgetTemplate":
        """Map a stored template name to a template, falling back to bubble"""
        for template in cls:
            if template.value == value:
                return template
        return cls.BUBBLE


class WidgetPosition(str, Enum):
    """Corner of the host page the widget is anchored to"""
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"
    TOP_RIGHT = "top-right"
    TOP_LEFT = "top-left"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "WidgetPosition":
        for position in cls:
            if position.value == value:
                return position
        return cls.BOTTOM_RIGHT

    @property
    def is_right(self) -> bool:
        return self in (WidgetPosition.BOTTOM_RIGHT, WidgetPosition.TOP_RIGHT)

    @property
    def is_bottom(self) -> bool:
        return self in (WidgetPosition.BOTTOM_RIGHT, WidgetPosition.BOTTOM_LEFT)


class WidgetSettings(BaseModel):
    """
    Display and behaviour configuration read by the widget.

    Stored values are passed through as-is; unknown template or position
    names are resolved by the widget, not rejected here.
    """
    header_title: str = DEFAULT_HEADER_TITLE
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    ai_instructions: str = ""
    position: str = WidgetPosition.BOTTOM_RIGHT.value
    widget_template: str = WidgetTemplate.BUBBLE.value
    primary_color: str = DEFAULT_PRIMARY_COLOR
    text_color: str = DEFAULT_TEXT_COLOR

    @field_validator('header_title', mode='before')
    @classmethod
    def default_header_title(cls, v):
        return v or DEFAULT_HEADER_TITLE

    @field_validator('welcome_message', mode='before')
    @classmethod
    def default_welcome_message(cls, v):
        return v or DEFAULT_WELCOME_MESSAGE

    @field_validator('ai_instructions', mode='before')
    @classmethod
    def default_ai_instructions(cls, v):
        return v or ""

    @field_validator('position', 'widget_template', mode='before')
    @classmethod
    def default_choice(cls, v, info):
        if v:
            return v
        return cls.model_fields[info.field_name].default

    @field_validator('primary_color', mode='before')
    @classmethod
    def default_primary_color(cls, v):
        return v or DEFAULT_PRIMARY_COLOR

    @field_validator('text_color', mode='before')
    @classmethod
    def default_text_color(cls, v):
        return v or DEFAULT_TEXT_COLOR


class WidgetSettingsUpdate(BaseModel):
    """Dashboard request for saving widget settings"""
    header_title: str = Field(DEFAULT_HEADER_TITLE, min_length=1, max_length=100)
    welcome_message: str = Field(DEFAULT_WELCOME_MESSAGE, min_length=1, max_length=500)
    ai_instructions: str = Field("", max_length=4000)
    position: WidgetPosition = WidgetPosition.BOTTOM_RIGHT
    widget_template: WidgetTemplate = WidgetTemplate.BUBBLE
    primary_color: str = DEFAULT_PRIMARY_COLOR
    text_color: str = DEFAULT_TEXT_COLOR

    @field_validator('primary_color', 'text_color')
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        v = v.strip()
        if not HEX_COLOR_PATTERN.match(v):
            raise ValueError('Colour must be a hex value like #2563eb')
        return v.lower()


class WidgetSettingsResponse(BaseModel):
    """Public settings lookup response"""
    settings: WidgetSettings


class DashboardWidgetSettings(WidgetSettings):
    """Widget settings as seen by their owner"""
    id: str


class EmbedCodeResponse(BaseModel):
    """Embed snippet handed to dashboard users"""
    widget_id: str
    loader_url: str
    script: str


class FrameSize(BaseModel):
    """Pixel size of the widget iframe on the host page"""
    width: int
    height: int
