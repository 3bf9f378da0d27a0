"""
Memento document rewriting.

Archived pages are frequently malformed, so rewriting is a single textual pass
over the raw HTML rather than a parse/serialize round trip:

- a <base> directive goes right after the FIRST <head ...> tag, or at the very
  start of the document when there is none;
- the instrumentation <script> goes right before the FIRST </body>, or at the
  very end when there is none.

Nothing else in the document is touched.
"""

import html
import json
import re

from rendering.models import RenderableDocument
from playback.config import BANNER_TEXT

# <head> or <head lang=...>, but never <header>
HEAD_OPEN_RE = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)

INSTRUMENTATION_MARKER = "data-playback-instrumentation"
BANNER_ID = "playback-injected-banner"

_SCRIPT_TEMPLATE = """
<script {marker}>
  (function () {{
    console.log("-----------------------------------------");
    console.log("SolrWayback playback script injected successfully.");
    console.log("This script is running inside the playback context.");

    function showBanner() {{
      if (document.getElementById({banner_id})) return;
      var banner = document.createElement("div");
      banner.id = {banner_id};
      banner.style.position = "fixed";
      banner.style.top = "0";
      banner.style.left = "0";
      banner.style.width = "100%";
      banner.style.backgroundColor = "#ffcc00";
      banner.style.color = "black";
      banner.style.textAlign = "center";
      banner.style.zIndex = "2147483647";
      banner.style.padding = "5px";
      banner.style.pointerEvents = "none";
      banner.innerText = {banner_text};
      document.body.appendChild(banner);
    }}

    // The block may run before the rest of the page is parsed
    if (document.readyState === "loading") {{
      document.addEventListener("DOMContentLoaded", showBanner);
    }} else {{
      showBanner();
    }}
    console.log("-----------------------------------------");
  }})();
</script>
"""


class RewriteError(Exception):
    """Raised when a document cannot be given a base URL."""
    pass


def _js_string(value: str) -> str:
    # "</" would close the surrounding <script> early
    return json.dumps(value).replace("</", "<\\/")


def build_instrumentation_script(banner_text: str = BANNER_TEXT) -> str:
    """Self-contained <script> block: diagnostic console markers plus the overlay banner."""
    return _SCRIPT_TEMPLATE.format(
        marker=INSTRUMENTATION_MARKER,
        banner_id=_js_string(BANNER_ID),
        banner_text=_js_string(banner_text),
    )


def build_base_directive(base_url: str) -> str:
    return f'<base href="{html.escape(base_url, quote=True)}" />'


class DocumentRewriter:
    """
    Pure transformation: raw archived HTML + base URL -> RenderableDocument.
    No I/O; identical inputs always give identical output.
    """

    def __init__(self, banner_text: str = BANNER_TEXT):
        self._script = build_instrumentation_script(banner_text)

    def rewrite(self, raw_html: str, base_url: str) -> RenderableDocument:
        if not base_url:
            raise RewriteError("base_url is required to rewrite a memento")

        processed = self._inject_base(raw_html, build_base_directive(base_url))
        processed = self._inject_script(processed)
        return RenderableDocument(html=processed, base_url=base_url)

    @staticmethod
    def _inject_base(doc: str, directive: str) -> str:
        match = HEAD_OPEN_RE.search(doc)
        if match is None:
            return directive + doc
        return doc[:match.end()] + directive + doc[match.end():]

    def _inject_script(self, doc: str) -> str:
        match = BODY_CLOSE_RE.search(doc)
        if match is None:
            return doc + self._script
        return doc[:match.start()] + self._script + doc[match.start():]
