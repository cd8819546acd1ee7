"""
ChatGPT-style template.

Closed, it shows a compact prompt bar that is always visible: typing there
and pressing Enter opens the full view and sends in one step. Open, it is a
larger conversational surface with a minimal header.
"""
from sitewise.widget.templates.base import (
    Element,
    TemplateProps,
    container,
    h,
    header,
    message_list,
    powered_by,
    prompt_input,
    teaser,
)


def _open_and_send(props: TemplateProps):
    props.set_is_open(True)
    return props.handle_send_message()


def _prompt_bar(props: TemplateProps) -> Element:
    def on_keydown(key, modifiers=False):
        if key == "Enter" and not modifiers and props.can_send:
            return _open_and_send(props)
        return None

    def on_click():
        if props.can_send:
            return _open_and_send(props)
        return None

    return h(
        "div",
        {"data-role": "prompt-bar", "class": "flex items-center gap-2 w-[320px] bg-white border rounded-xl shadow-lg px-3 py-2"},
        h(
            "button",
            {"data-role": "launcher", "type": "button", "aria-label": "Open chat"},
            "⤢",
            on={"click": lambda: props.set_is_open(True)}
        ),
        h(
            "input",
            {
                "data-role": "bar-input",
                "type": "text",
                "placeholder": "Ask anything...",
                "value": props.prompt_value,
                "disabled": props.is_loading,
            },
            on={"input": props.set_prompt_value, "keydown": on_keydown}
        ),
        h(
            "button",
            {
                "data-role": "bar-send",
                "type": "button",
                "aria-label": "Send",
                "disabled": not props.can_send,
                "style": {"background": f"linear-gradient(135deg, {props.primary_color}, {props.primary_color}cc)", "color": props.text_color},
            },
            "✨",
            on={"click": on_click}
        )
    )


def render(props: TemplateProps) -> Element:
    if not props.is_open:
        return container(
            props,
            "chatgpt",
            teaser(props, "✨", offset="64px"),
            _prompt_bar(props)
        )

    empty_state = h(
        "div",
        {"data-role": "empty-state", "class": "flex flex-col items-center justify-center h-full text-center space-y-4"},
        h("p", {"class": "font-medium"}, props.welcome_message),
        h("p", {"class": "text-sm text-gray-500 mt-1"}, "Ask me anything to get started")
    )

    return container(
        props,
        "chatgpt",
        h(
            "div",
            {"data-role": "window", "class": "w-[400px] bg-white rounded-2xl overflow-hidden border shadow-2xl"},
            header(props, "flex items-center justify-between px-4 py-3 border-b bg-gray-50"),
            message_list(
                props,
                "h-[350px] overflow-y-auto p-4 space-y-4 bg-white",
                "max-w-[85%] px-4 py-3 text-sm rounded-2xl rounded-br-md",
                "max-w-[85%] px-4 py-3 text-sm bg-gray-100 rounded-2xl rounded-bl-md",
                empty_state
            ),
            prompt_input(props, "Message...", "p-4 border-t bg-gray-50 relative"),
            powered_by()
        )
    )
