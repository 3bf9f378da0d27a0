import os
from dotenv import load_dotenv

# Configuration for the playback host.
# Only deployment concerns (where the archive lives, where we listen) come from
# the environment. Core classes take these as constructor defaults.

load_dotenv()

# Origin of the SolrWayback backend (search index + replay service)
ARCHIVE_BASE_URL = os.getenv("ARCHIVE_BASE_URL", "http://localhost:8080").rstrip("/")

# Search index endpoint, relative to ARCHIVE_BASE_URL
SEARCH_PATH = "/solrwayback/services/frontend/solr/search/results/"

# Replay endpoint: <REPLAY_PATH>/<14-digit timestamp>/<original url>
REPLAY_PATH = "/solrwayback/services/web"

# Network timeout for archive requests (seconds)
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", 10))

# User-Agent string sent to the archive
USER_AGENT = "SolrWaybackPlayback/1.0"

# Path prefixes the host forwards verbatim to the archive backend
PROXY_PREFIXES = ("/services", "/solrwayback")

# Route under which ephemeral rendered documents are served
BLOB_ROUTE = "/blob"

# Capabilities granted to displayed mementos. Nothing outside this set.
SANDBOX_FLAGS = (
    "allow-scripts",
    "allow-same-origin",
    "allow-forms",
    "allow-popups",
)

# Text of the overlay banner injected into every memento.
# Document content, so not read from the environment; override per DocumentRewriter.
BANNER_TEXT = "Injected via SolrWayback Playback"

# Host application bind address
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", 5173))

# Optional log file in addition to stdout
LOG_FILE = os.getenv("LOG_FILE") or None
