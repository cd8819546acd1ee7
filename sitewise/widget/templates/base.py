"""
Element tree and building blocks shared by the widget templates.

Templates are pure functions from TemplateProps to an Element tree. The tree
is serialised to HTML for the widget page, and its event handlers (kept out
of the HTML) let the controller and tests drive interactions directly.
"""
from dataclasses import dataclass, field
from html import escape
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Union

from sitewise.models.chat import ChatMessage
from sitewise.models.widget import WidgetPosition
from sitewise.utils.formatting import render_markdown

VOID_TAGS = frozenset({"input", "br", "img", "meta", "link"})

POSITION_CLASSES = {
    WidgetPosition.BOTTOM_RIGHT: "bottom-0 right-0",
    WidgetPosition.BOTTOM_LEFT: "bottom-0 left-0",
    WidgetPosition.TOP_RIGHT: "top-0 right-0",
    WidgetPosition.TOP_LEFT: "top-0 left-0",
}

POWERED_BY_URL = "https://sitewise.ai"


@dataclass(frozen=True)
class RawHTML:
    """Already-safe HTML, kept with the text it was rendered from"""
    html: str
    source: str = ""


@dataclass
class Element:
    tag: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    children: List[Union["Element", RawHTML, str]] = field(default_factory=list)
    handlers: Dict[str, Callable[..., Any]] = field(default_factory=dict)

    def iter(self) -> Iterator["Element"]:
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def find_all(self, role: str) -> List["Element"]:
        return [node for node in self.iter() if node.attrs.get("data-role") == role]

    def find(self, role: str) -> Optional["Element"]:
        matches = self.find_all(role)
        return matches[0] if matches else None

    def text(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.text())
            elif isinstance(child, RawHTML):
                parts.append(child.source)
            else:
                parts.append(child)
        return "".join(parts)


def h(tag: str, attrs: Optional[Dict[str, Any]] = None, *children, on: Optional[Dict[str, Callable]] = None) -> Element:
    """Build an element; None children are dropped and lists are flattened"""
    flat: List[Union[Element, RawHTML, str]] = []
    for child in children:
        if child is None or child is False:
            continue
        if isinstance(child, (list, tuple)):
            flat.extend(c for c in child if c is not None and c is not False)
        else:
            flat.append(child)
    return Element(tag=tag, attrs=dict(attrs or {}), children=flat, handlers=dict(on or {}))


def _render_attr(name: str, value: Any) -> Optional[str]:
    if value is None or value is False:
        return None
    if value is True:
        return name
    if name == "style" and isinstance(value, dict):
        value = ";".join(f"{key}:{val}" for key, val in value.items())
    return f'{name}="{escape(str(value), quote=True)}"'


def render_html(node: Union[Element, RawHTML, str, None]) -> str:
    if node is None:
        return ""
    if isinstance(node, RawHTML):
        return node.html
    if isinstance(node, str):
        return escape(node, quote=False)

    attrs = [a for a in (_render_attr(k, v) for k, v in node.attrs.items()) if a]
    open_tag = f"<{node.tag}{' ' + ' '.join(attrs) if attrs else ''}>"
    if node.tag in VOID_TAGS:
        return open_tag
    inner = "".join(render_html(child) for child in node.children)
    return f"{open_tag}{inner}</{node.tag}>"


@dataclass
class TemplateProps:
    is_open: bool
    messages: List[ChatMessage]
    prompt_value: str
    is_loading: bool
    header_title: str
    welcome_message: str
    primary_color: str
    text_color: str
    position: WidgetPosition
    show_bubble_message: bool
    set_is_open: Callable[[bool], None]
    set_prompt_value: Callable[[str], None]
    handle_send_message: Callable[[], Awaitable[Any]]
    set_show_bubble_message: Callable[[bool], None]

    @property
    def can_send(self) -> bool:
        return bool(self.prompt_value.strip()) and not self.is_loading

    @property
    def awaiting_first_delta(self) -> bool:
        return self.is_loading and bool(self.messages) and self.messages[-1].role == "user"


def submit_on_enter(props: TemplateProps, key: str, modifiers: bool = False):
    """Keydown handler body: Enter without modifiers sends a non-blank prompt"""
    if key == "Enter" and not modifiers and props.can_send:
        return props.handle_send_message()
    return None


def send_if_allowed(props: TemplateProps):
    if props.can_send:
        return props.handle_send_message()
    return None


def container(props: TemplateProps, template_name: str, *children) -> Element:
    return h(
        "div",
        {
            "data-role": "widget",
            "data-template": template_name,
            "data-state": "open" if props.is_open else "closed",
            "class": f"fixed {POSITION_CLASSES[props.position]} z-50 p-4",
        },
        *children
    )


def teaser(props: TemplateProps, icon: str, offset: str = "70px") -> Optional[Element]:
    """Dismissible intro bubble shown above the closed launcher"""
    if props.is_open or not props.show_bubble_message:
        return None

    position = props.position
    vertical = "bottom" if position.is_bottom else "top"
    horizontal = "right" if position.is_right else "left"

    return h(
        "div",
        {
            "data-role": "teaser",
            "class": "absolute bg-white border rounded-xl shadow-lg p-3 min-w-[180px]",
            "style": {vertical: offset, horizontal: "0"},
        },
        h(
            "button",
            {"data-role": "teaser-dismiss", "type": "button", "aria-label": "Dismiss"},
            "×",
            on={"click": lambda: props.set_show_bubble_message(False)}
        ),
        h("p", {"class": "text-sm font-medium"}, f"{icon} {props.welcome_message}")
    )


def typing_indicator(bubble_class: str) -> Element:
    return h(
        "div",
        {"data-role": "typing-indicator", "class": "flex justify-start"},
        h(
            "div",
            {"class": bubble_class},
            [h("span", {"class": "dot", "style": {"animation-delay": f"{delay}ms"}}) for delay in (0, 150, 300)]
        )
    )


def message_list(
    props: TemplateProps,
    list_class: str,
    user_class: str,
    assistant_class: str,
    empty_state: Element
) -> Element:
    """
    Scrollable conversation. The newest entry carries the scroll anchor, so
    the view always lands on the latest message.
    """
    items: List[Element] = []
    for index, message in enumerate(props.messages):
        is_user = message.role == "user"
        items.append(h(
            "div",
            {
                "data-role": "message",
                "data-message-role": message.role,
                "class": f"flex {'justify-end' if is_user else 'justify-start'}",
            },
            h(
                "div",
                {
                    "class": user_class if is_user else assistant_class,
                    "style": {"background-color": props.primary_color, "color": props.text_color} if is_user else None,
                },
                h(
                    "p" if is_user else "div",
                    {"data-role": "message-content", "class": "whitespace-pre-wrap" if is_user else "prose"},
                    message.content if is_user else RawHTML(render_markdown(message.content), message.content)
                )
            )
        ))

    if props.awaiting_first_delta:
        items.append(typing_indicator(assistant_class))

    if items:
        items[-1].attrs["data-scroll"] = "bottom"

    return h(
        "div",
        {"data-role": "message-list", "class": list_class},
        empty_state if not props.messages else None,
        items
    )


def prompt_input(props: TemplateProps, placeholder: str, wrapper_class: str, role: str = "prompt") -> Element:
    return h(
        "div",
        {"class": wrapper_class},
        h(
            "input",
            {
                "data-role": f"{role}-input",
                "type": "text",
                "placeholder": placeholder,
                "value": props.prompt_value,
                "disabled": props.is_loading,
            },
            on={
                "input": props.set_prompt_value,
                "keydown": lambda key, modifiers=False: submit_on_enter(props, key, modifiers),
            }
        ),
        h(
            "button",
            {
                "data-role": f"{role}-send",
                "type": "button",
                "aria-label": "Send",
                "disabled": not props.can_send,
                "style": {"background-color": props.primary_color, "color": props.text_color},
            },
            "Send",
            on={"click": lambda: send_if_allowed(props)}
        )
    )


def header(props: TemplateProps, header_class: str, style: Optional[Dict[str, str]] = None) -> Element:
    return h(
        "div",
        {"data-role": "header", "class": header_class, "style": style},
        h("span", {"class": "font-medium text-sm"}, props.header_title),
        h(
            "button",
            {"data-role": "close", "type": "button", "aria-label": "Close"},
            "×",
            on={"click": lambda: props.set_is_open(False)}
        )
    )


def powered_by() -> Element:
    return h(
        "p",
        {"data-role": "powered-by", "class": "text-[10px] text-gray-400 text-center"},
        "Powered by ",
        h("a", {"href": POWERED_BY_URL, "target": "_blank", "rel": "noopener noreferrer"}, "Sitewise.ai")
    )
