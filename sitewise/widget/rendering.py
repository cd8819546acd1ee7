"""Template dispatch"""
from sitewise.models.widget import WidgetTemplate
from sitewise.widget.templates import bubble, chatgpt, panel
from sitewise.widget.templates.base import Element, TemplateProps


def render_template(template: WidgetTemplate, props: TemplateProps) -> Element:
    """Render with the template's renderer; anything unrecognised gets the bubble"""
    if template is WidgetTemplate.PANEL:
        return panel.render(props)
    if template is WidgetTemplate.CHATGPT:
        return chatgpt.render(props)
    return bubble.render(props)
