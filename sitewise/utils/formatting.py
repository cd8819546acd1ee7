"""Markdown rendering for assistant replies"""
from markdown_it import MarkdownIt

# Raw HTML in replies is escaped, never passed through
_markdown = MarkdownIt("commonmark", {"html": False, "breaks": True})


def render_markdown(text: str) -> str:
    """Render reply Markdown to HTML safe to insert into the widget"""
    if not text:
        return ""
    return _markdown.render(text)
