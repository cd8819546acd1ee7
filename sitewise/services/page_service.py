"""Server-rendered widget page served inside the host page's iframe"""
from dataclasses import replace
from typing import List, Optional
import json
import re

from sitewise.models.chat import ChatMessage
from sitewise.models.widget import WidgetPosition, WidgetSettings, WidgetTemplate
from sitewise.widget.rendering import render_template
from sitewise.widget.sizing import frame_size
from sitewise.widget.state import APOLOGY_MESSAGE
from sitewise.widget.templates.base import Element, TemplateProps, render_html

ORIGIN_PATTERN = re.compile(r'^https?://[A-Za-z0-9.\-]+(?::\d+)?$')

TRANSPARENT_STYLE = (
    "html,body{background:transparent !important;background-color:transparent !important;"
    "margin:0;padding:0;overflow:hidden;}"
    "[hidden]{display:none !important;}"
)

EMPTY_PAGE = (
    "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
    f"<style>{TRANSPARENT_STYLE}</style></head><body></body></html>"
)

# Rendered once per page so the script can clone correctly styled entries
PROTOTYPE_MESSAGES = [
    ChatMessage(role="user", content=""),
    ChatMessage(role="assistant", content=""),
    ChatMessage(role="user", content=""),
]


def normalize_origin(origin: Optional[str]) -> Optional[str]:
    """Accept only a bare scheme://host[:port] origin"""
    if not origin:
        return None
    origin = origin.rstrip("/")
    return origin if ORIGIN_PATTERN.match(origin) else None


def _noop(*args, **kwargs):
    return None


def _script_json(value) -> str:
    # Keep "</script>" out of the inline script
    return json.dumps(value).replace("</", "<\\/")


def _prototypes(template: WidgetTemplate, props: TemplateProps) -> str:
    """User entry, assistant entry and typing indicator in the template's styling"""
    sample = render_template(
        template,
        replace(props, is_open=True, messages=list(PROTOTYPE_MESSAGES), is_loading=True)
    )
    user, assistant = sample.find_all("message")[:2]
    nodes: List[Element] = [user, assistant, sample.find("typing-indicator")]
    for node in nodes:
        node.attrs.pop("data-scroll", None)
    return "".join(render_html(node) for node in nodes)


def render_widget_page(
    settings: WidgetSettings,
    parent_origin: Optional[str],
    prefix: str = "sitewise",
    widget_id: Optional[str] = None,
    api_url: str = ""
) -> str:
    """
    Both views of the configured template plus the script that runs them in
    the browser.

    The script applies host commands (only from parent_origin), posts the
    fixed resize notifications back to it and runs the send flow: blank
    prompts and sends while a reply is streaming are ignored, the user entry
    is appended, the reply streams from the chat endpoint into one assistant
    entry and a failure appends the apology. Finished replies are swapped for
    their rendered Markdown.
    """
    template = WidgetTemplate.resolve(settings.widget_template)
    closed_props = TemplateProps(
        is_open=False,
        messages=[],
        prompt_value="",
        is_loading=False,
        header_title=settings.header_title,
        welcome_message=settings.welcome_message,
        primary_color=settings.primary_color,
        text_color=settings.text_color,
        position=WidgetPosition.resolve(settings.position),
        show_bubble_message=True,
        set_is_open=_noop,
        set_prompt_value=_noop,
        handle_send_message=_noop,
        set_show_bubble_message=_noop,
    )
    closed_view = render_html(render_template(template, closed_props))
    open_view = render_html(render_template(template, replace(closed_props, is_open=True)))
    prototypes = _prototypes(template, closed_props)

    sizes = {
        name: frame_size(template, is_open, teaser).model_dump()
        for name, is_open, teaser in (("open", True, False), ("teaser", False, True), ("closed", False, False))
    }
    api_url = api_url.rstrip("/")

    script = f"""
(function() {{
  var parentOrigin = {_script_json(parent_origin)};
  var prefix = {_script_json(prefix)};
  var sizes = {_script_json(sizes)};
  var widgetId = {_script_json(widget_id)};
  var chatUrl = {_script_json(api_url + "/api/chat")};
  var renderUrl = {_script_json(api_url + "/api/widget/render-message")};
  var systemPrompt = {_script_json(settings.ai_instructions or None)};
  var apology = {_script_json(APOLOGY_MESSAGE)};
  var state = {{ open: false, teaser: true, prompt: '', loading: false, messages: [] }};
  var root = document.getElementById('widget-root');
  var prototypes = document.getElementById('widget-prototypes').content;
  var list = root.querySelector('[data-view="open"] [data-role="message-list"]');
  var typing = null;

  function each(selector, fn) {{
    Array.prototype.forEach.call(root.querySelectorAll(selector), fn);
  }}

  function canSend() {{
    return state.prompt.trim() !== '' && !state.loading;
  }}

  function syncControls() {{
    each('[data-role="prompt-input"], [data-role="bar-input"]', function(input) {{
      input.disabled = state.loading;
      if (input.value !== state.prompt) input.value = state.prompt;
    }});
    each('[data-role="prompt-send"], [data-role="bar-send"]', function(button) {{
      button.disabled = !canSend();
    }});
  }}

  function render() {{
    root.querySelector('[data-view="closed"]').hidden = state.open;
    root.querySelector('[data-view="open"]').hidden = !state.open;
    var teaser = root.querySelector('[data-role="teaser"]');
    if (teaser) teaser.hidden = !state.teaser;
    syncControls();
    var size = state.open ? sizes.open : (state.teaser ? sizes.teaser : sizes.closed);
    if (parentOrigin && window.parent !== window) {{
      window.parent.postMessage({{ type: prefix + '-resize', width: size.width, height: size.height }}, parentOrigin);
    }}
  }}

  function scrollToBottom() {{
    list.scrollTop = list.scrollHeight;
  }}

  function appendEntry(role, text) {{
    var node = prototypes.querySelector('[data-message-role="' + role + '"]').cloneNode(true);
    node.querySelector('[data-role="message-content"]').textContent = text;
    var empty = list.querySelector('[data-role="empty-state"]');
    if (empty) empty.hidden = true;
    list.insertBefore(node, typing);
    scrollToBottom();
    return node.querySelector('[data-role="message-content"]');
  }}

  function showTyping(show) {{
    if (show && !typing) {{
      typing = prototypes.querySelector('[data-role="typing-indicator"]').cloneNode(true);
      list.appendChild(typing);
    }} else if (!show && typing) {{
      list.removeChild(typing);
      typing = null;
    }}
    scrollToBottom();
  }}

  function renderReply(node, text) {{
    fetch(renderUrl, {{
      method: 'POST',
      headers: {{ 'Content-Type': 'application/json' }},
      body: JSON.stringify({{ content: text }})
    }}).then(function(response) {{
      return response.ok ? response.json() : null;
    }}).then(function(data) {{
      if (data && typeof data.html === 'string') node.innerHTML = data.html;
    }}).catch(function() {{}});
  }}

  function readStream(response, onDelta) {{
    var reader = response.body.getReader();
    var decoder = new TextDecoder();
    var buffer = '';

    // true once the [DONE] sentinel arrives
    function handleLine(line) {{
      if (line.charAt(line.length - 1) === '\\r') line = line.slice(0, -1);
      if (line.indexOf('data:') !== 0) return false;
      var data = line.slice(5).trim();
      if (data === '[DONE]') return true;
      var payload;
      try {{ payload = JSON.parse(data); }} catch (e) {{ return false; }}
      if (payload && typeof payload.content === 'string' && payload.content) onDelta(payload.content);
      return false;
    }}

    function pump() {{
      return reader.read().then(function(result) {{
        if (result.done) {{
          if (buffer) handleLine(buffer);
          return;
        }}
        buffer += decoder.decode(result.value, {{ stream: true }});
        var lines = buffer.split('\\n');
        buffer = lines.pop();
        for (var i = 0; i < lines.length; i++) {{
          if (handleLine(lines[i])) {{
            reader.cancel();
            return;
          }}
        }}
        return pump();
      }});
    }}

    return pump();
  }}

  function send() {{
    var text = state.prompt.trim();
    if (!text || state.loading) return;

    state.messages.push({{ role: 'user', content: text }});
    appendEntry('user', text);
    var body = {{ messages: state.messages.slice() }};
    if (widgetId) body.widgetId = widgetId;
    if (systemPrompt) body.systemPrompt = systemPrompt;

    state.prompt = '';
    state.loading = true;
    showTyping(true);
    syncControls();

    var reply = '';
    var replyNode = null;

    fetch(chatUrl, {{
      method: 'POST',
      headers: {{ 'Content-Type': 'application/json' }},
      body: JSON.stringify(body)
    }}).then(function(response) {{
      if (!response.ok || !response.body) {{
        throw new Error('Failed to get response (status ' + response.status + ')');
      }}
      return readStream(response, function(delta) {{
        reply += delta;
        if (!replyNode) {{
          showTyping(false);
          state.messages.push({{ role: 'assistant', content: reply }});
          replyNode = appendEntry('assistant', reply);
        }} else {{
          state.messages[state.messages.length - 1].content = reply;
          replyNode.textContent = reply;
          scrollToBottom();
        }}
      }});
    }}).then(function() {{
      if (replyNode) renderReply(replyNode, reply);
    }}).catch(function(error) {{
      if (window.console) console.error('Chat error:', error);
      if (replyNode) renderReply(replyNode, reply);
      state.messages.push({{ role: 'assistant', content: apology }});
      appendEntry('assistant', apology);
    }}).then(function() {{
      state.loading = false;
      showTyping(false);
      syncControls();
    }});
  }}

  window.addEventListener('message', function(event) {{
    if (!parentOrigin || event.origin !== parentOrigin) return;
    var type = event.data && event.data.type;
    if (type === prefix + '-open') state.open = true;
    else if (type === prefix + '-close') state.open = false;
    else if (type === prefix + '-toggle') state.open = !state.open;
    else return;
    render();
  }});

  root.addEventListener('click', function(event) {{
    var target = event.target.closest('[data-role]');
    if (!target) return;
    var role = target.getAttribute('data-role');
    if (role === 'launcher') state.open = true;
    else if (role === 'close') state.open = false;
    else if (role === 'teaser-dismiss') state.teaser = false;
    else if (role === 'prompt-send') {{ send(); return; }}
    else if (role === 'bar-send' && canSend()) state.open = true;
    else return;
    render();
    if (role === 'bar-send') send();
  }});

  root.addEventListener('input', function(event) {{
    var role = event.target.getAttribute('data-role');
    if (role !== 'prompt-input' && role !== 'bar-input') return;
    state.prompt = event.target.value;
    syncControls();
  }});

  root.addEventListener('keydown', function(event) {{
    var role = event.target.getAttribute('data-role');
    if (role !== 'prompt-input' && role !== 'bar-input') return;
    if (event.key !== 'Enter' || event.shiftKey || event.ctrlKey || event.altKey || event.metaKey) return;
    event.preventDefault();
    if (!canSend()) return;
    // The closed prompt bar opens the full view and sends in one step
    if (role === 'bar-input') {{
      state.open = true;
      render();
    }}
    send();
  }});

  render();
}})();
"""

    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">"
        f"<style>{TRANSPARENT_STYLE}</style></head>"
        "<body class=\"widget-embed\"><div id=\"widget-root\">"
        f"<div data-view=\"closed\">{closed_view}</div>"
        f"<div data-view=\"open\" hidden>{open_view}</div>"
        f"</div><template id=\"widget-prototypes\">{prototypes}</template>"
        f"<script>{script}</script></body></html>"
    )
