"""Bubble template: round launcher button, rounded chat card when open"""
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


def render(props: TemplateProps) -> Element:
    if not props.is_open:
        return container(
            props,
            "bubble",
            teaser(props, "👋"),
            h(
                "button",
                {
                    "data-role": "launcher",
                    "type": "button",
                    "aria-label": "Open chat",
                    "class": "w-14 h-14 rounded-full flex items-center justify-center",
                    "style": {"background-color": props.primary_color, "color": props.text_color},
                },
                "💬",
                on={"click": lambda: props.set_is_open(True)}
            )
        )

    empty_state = h(
        "div",
        {"data-role": "empty-state", "class": "text-center text-gray-500 text-sm py-8"},
        h("p", None, props.welcome_message),
        h("p", {"class": "text-xs mt-2"}, "Ask me anything!")
    )

    return container(
        props,
        "bubble",
        h(
            "div",
            {"data-role": "window", "class": "w-[360px] bg-white rounded-2xl overflow-hidden border"},
            header(
                props,
                "flex items-center justify-between px-4 py-3",
                {"background-color": props.primary_color, "color": props.text_color}
            ),
            message_list(
                props,
                "h-[320px] overflow-y-auto p-4 space-y-3 bg-gray-50",
                "max-w-[80%] px-4 py-2.5 rounded-2xl text-sm rounded-br-sm",
                "max-w-[80%] px-4 py-2.5 rounded-2xl text-sm bg-white rounded-bl-sm shadow-sm",
                empty_state
            ),
            prompt_input(props, "Type a message...", "p-4 border-t bg-white relative"),
            powered_by()
        )
    )
