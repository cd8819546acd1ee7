"""Panel template: pill launcher, tall side panel when open"""
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
            "panel",
            teaser(props, "💬"),
            h(
                "button",
                {
                    "data-role": "launcher",
                    "type": "button",
                    "aria-label": "Open chat",
                    "class": "h-14 w-14 rounded-2xl shadow-lg flex items-center justify-center",
                    "style": {"background-color": props.primary_color, "color": props.text_color},
                },
                "☰",
                on={"click": lambda: props.set_is_open(True)}
            )
        )

    empty_state = h(
        "div",
        {"data-role": "empty-state", "class": "flex flex-col items-center justify-center h-full text-center"},
        h("p", {"class": "font-medium"}, props.welcome_message),
        h("p", {"class": "text-sm text-gray-500 mt-1"}, "We usually reply in a few seconds.")
    )

    return container(
        props,
        "panel",
        h(
            "div",
            {"data-role": "window", "class": "w-[380px] h-[640px] flex flex-col bg-white rounded-xl border shadow-2xl"},
            header(
                props,
                "flex items-center justify-between px-5 py-4",
                {"background-color": props.primary_color, "color": props.text_color}
            ),
            message_list(
                props,
                "flex-1 overflow-y-auto p-5 space-y-4 bg-gray-50",
                "max-w-[85%] px-4 py-3 rounded-xl text-sm",
                "max-w-[85%] px-4 py-3 rounded-xl text-sm bg-white border",
                empty_state
            ),
            prompt_input(props, "Write your question...", "p-4 border-t bg-white relative"),
            powered_by()
        )
    )
