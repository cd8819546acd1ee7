"""
Iframe dimensions per template and state.

Sizes are fixed constants rather than measured from the rendered DOM so the
frame behaves the same on every host page regardless of its CSS. Each value
includes the template's outer padding and room for shadows.
"""
from sitewise.models.widget import FrameSize, WidgetTemplate

# template -> (open, closed with teaser, closed without teaser)
FRAME_SIZES = {
    WidgetTemplate.BUBBLE: (
        FrameSize(width=400, height=580),
        FrameSize(width=300, height=180),
        FrameSize(width=88, height=88),
    ),
    WidgetTemplate.PANEL: (
        FrameSize(width=420, height=680),
        FrameSize(width=300, height=180),
        FrameSize(width=88, height=88),
    ),
    WidgetTemplate.CHATGPT: (
        FrameSize(width=440, height=600),
        FrameSize(width=360, height=190),
        FrameSize(width=360, height=96),
    ),
}


def frame_size(template: WidgetTemplate, is_open: bool, show_bubble_message: bool) -> FrameSize:
    open_size, teaser_size, closed_size = FRAME_SIZES[template]
    if is_open:
        return open_size
    if show_bubble_message:
        return teaser_size
    return closed_size
