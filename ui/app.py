"""
Flask host for the playback pipeline.
Forwards archive paths to the SolrWayback backend and serves the ephemeral
documents presented by RenderSurface.
"""

from urllib.parse import urlsplit

import requests
from flask import Flask, Response, abort, request

from playback.config import (
    ARCHIVE_BASE_URL,
    BLOB_ROUTE,
    PROXY_PREFIXES,
    REQUEST_TIMEOUT,
)
from playback.logger import setup_logger
from rendering.surface import blob_store

logger = setup_logger("playback.proxy")

app = Flask(__name__)
# Replay paths embed the original URL ("/web/<ts>/http://..."); merging
# slashes would redirect them to a different capture key.
app.url_map.merge_slashes = False

# Connection-level headers that must not be relayed
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
}

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _raw_request_uri():
    """Path + query exactly as the client sent them."""
    # RAW_URI keeps percent-escapes that PATH_INFO has already decoded;
    # servers disagree on whether it carries the query, so that comes separately
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    path = raw.split("?", 1)[0] if raw and raw.startswith("/") else request.path
    query = request.query_string.decode("latin-1")
    return f"{path}?{query}" if query else path


def _rewrite_location(location):
    """Point redirects at the backend back at this host."""
    backend = urlsplit(ARCHIVE_BASE_URL)
    target = urlsplit(location)
    if target.scheme == backend.scheme and target.netloc == backend.netloc:
        own = urlsplit(request.host_url)
        return target._replace(scheme=own.scheme, netloc=own.netloc).geturl()
    return location


def forward(path=""):
    """Relay the current request to the archive backend, path unchanged."""
    target = f"{ARCHIVE_BASE_URL}{_raw_request_uri()}"
    headers = {k: v for k, v in request.headers if k.lower() not in HOP_BY_HOP_HEADERS and k.lower() != "host"}
    # changeOrigin: the backend sees its own host
    headers["Host"] = urlsplit(ARCHIVE_BASE_URL).netloc

    try:
        upstream = requests.request(
            request.method,
            target,
            headers=headers,
            data=request.get_data(),
            timeout=REQUEST_TIMEOUT,
            allow_redirects=False,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"{request.method} {target} failed: {e}", extra={"context": "proxy"})
        return Response(f"Bad gateway: {e}", status=502, mimetype="text/plain")

    logger.info(f"{request.method} {target} -> {upstream.status_code}", extra={"context": "proxy"})
    response_headers = []
    for name, value in upstream.headers.items():
        if name.lower() in HOP_BY_HOP_HEADERS:
            continue
        if name.lower() == "location":
            value = _rewrite_location(value)
        response_headers.append((name, value))
    return Response(upstream.content, status=upstream.status_code, headers=response_headers)


for prefix in PROXY_PREFIXES:
    endpoint = f"proxy_{prefix.strip('/')}"
    app.add_url_rule(f"{prefix}/<path:path>", endpoint, forward, methods=PROXY_METHODS)
    app.add_url_rule(prefix, f"{endpoint}_root", forward, methods=PROXY_METHODS)


@app.route(f"{BLOB_ROUTE}/<token>")
def blob(token):
    """Serve a presented document under the playback sandbox."""
    entry = blob_store.get(token)
    if entry is None:
        abort(404)
    response = Response(entry.content, content_type=entry.content_type)
    response.headers["Content-Security-Policy"] = f"sandbox {entry.sandbox}".rstrip()
    response.headers["Cache-Control"] = "no-store"
    return response
