"""Loader script and embed snippet generation"""
import json
from urllib.parse import urlsplit, quote

from sitewise.models.widget import WidgetPosition

# Initial iframe size: large enough that shadows and the teaser aren't clipped
INITIAL_FRAME_WIDTH = 300
INITIAL_FRAME_HEIGHT = 180
EDGE_OFFSET_PX = 20


def origin_of(url: str) -> str:
    """scheme://host[:port] of a URL, as browsers report it in MessageEvent.origin"""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def corner_css(position: WidgetPosition) -> str:
    vertical = "bottom" if position.is_bottom else "top"
    horizontal = "right" if position.is_right else "left"
    return f"{vertical}:{EDGE_OFFSET_PX}px;{horizontal}:{EDGE_OFFSET_PX}px;"


def render_loader_script(
    widget_id: str,
    base_url: str,
    prefix: str = "sitewise",
    global_name: str = "SiteWise",
    position: WidgetPosition = WidgetPosition.BOTTOM_RIGHT
) -> str:
    """
    Build the script host pages include to embed a widget.

    The script runs once per page (guarded by window.__<prefix>Loaded, which
    is never cleared), mounts an iframe pointed at <base>/widget/<id>, only
    honours resize messages from the base origin and exposes
    window.<global_name>.open/close/toggle. Every host-page interaction is
    wrapped so a failure inside the widget never breaks the host page.
    """
    base_origin = origin_of(base_url)
    guard = f"__{prefix}Loaded"

    return f"""
(function() {{
  // Prevent multiple initializations
  if (window[{json.dumps(guard)}]) return;
  window[{json.dumps(guard)}] = true;

  var widgetId = {json.dumps(widget_id)};
  var baseUrl = {json.dumps(base_origin)};
  var iframe = null;

  function post(type) {{
    try {{
      if (iframe && iframe.contentWindow) {{
        iframe.contentWindow.postMessage({{ type: type }}, baseUrl);
      }}
    }} catch (e) {{}}
  }}

  function init() {{
    try {{
      var container = document.createElement('div');
      container.id = '{prefix}-widget-container';
      container.style.cssText = 'position:fixed;{corner_css(position)}z-index:2147483647;pointer-events:none;';
      document.body.appendChild(container);

      iframe = document.createElement('iframe');
      iframe.id = '{prefix}-widget-iframe';
      iframe.src = baseUrl + '/widget/' + encodeURIComponent(widgetId) +
        '?origin=' + encodeURIComponent(window.location.origin);
      iframe.style.cssText = 'border:none;width:{INITIAL_FRAME_WIDTH}px;height:{INITIAL_FRAME_HEIGHT}px;' +
        'background:transparent !important;background-color:transparent !important;pointer-events:auto;';
      iframe.setAttribute('allowtransparency', 'true');
      iframe.setAttribute('frameborder', '0');
      iframe.setAttribute('scrolling', 'no');
      container.appendChild(iframe);
    }} catch (e) {{
      if (window.console) console.error('{global_name} widget failed to load', e);
    }}
  }}

  // Handle messages from widget
  window.addEventListener('message', function(event) {{
    if (event.origin !== baseUrl || !iframe) return;
    var data = event.data || {{}};
    if (data.type === '{prefix}-resize') {{
      iframe.style.width = data.width + 'px';
      iframe.style.height = data.height + 'px';
    }}
  }});

  // Expose API
  window[{json.dumps(global_name)}] = {{
    open: function() {{ post('{prefix}-open'); }},
    close: function() {{ post('{prefix}-close'); }},
    toggle: function() {{ post('{prefix}-toggle'); }}
  }};

  if (document.readyState === 'loading') {{
    document.addEventListener('DOMContentLoaded', init);
  }} else {{
    init();
  }}
}})();
"""


def loader_url(api_url: str, widget_id: str) -> str:
    return f"{api_url.rstrip('/')}/api/widget/loader.js?id={quote(widget_id, safe='')}"


def render_embed_snippet(api_url: str, widget_id: str) -> str:
    """Script tag dashboard users paste into their site"""
    return (
        "<!-- SiteWise Chat Widget -->\n"
        f'<script src="{loader_url(api_url, widget_id)}" async></script>'
    )
