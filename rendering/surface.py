"""
Display surface for rewritten mementos.

A presented document lives in a process-local BlobStore under a random token
and is reachable at <BLOB_ROUTE>/<token> through the host application, which
serves it under the surface's sandbox policy. A surface holds at most one live
handle; presenting again revokes the previous one first.
"""

import html
import threading
import uuid
from collections import namedtuple
from typing import Dict, Optional, Set

from rendering.models import DisplayHandle, RenderableDocument, SandboxPolicy
from playback.config import BLOB_ROUTE
from playback.logger import setup_logger

logger = setup_logger("playback.surface")

Blob = namedtuple("Blob", ["content", "content_type", "sandbox"])


class BlobStore:
    """
    Thread-safe token -> Blob map.
    Written by surfaces on the event loop, read by the host's request threads.
    """

    def __init__(self):
        self._blobs: Dict[str, Blob] = {}
        self._lock = threading.Lock()

    def put(self, content: bytes, content_type: str = "text/html; charset=utf-8", sandbox: str = "") -> str:
        token = uuid.uuid4().hex
        with self._lock:
            self._blobs[token] = Blob(content, content_type, sandbox)
        return token

    def get(self, token: str) -> Optional[Blob]:
        with self._lock:
            return self._blobs.get(token)

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._blobs.pop(token, None) is not None

    def __contains__(self, token):
        with self._lock:
            return token in self._blobs

    def __len__(self):
        with self._lock:
            return len(self._blobs)


# Shared with ui.app, which serves the blobs
blob_store = BlobStore()


class RenderSurface:
    """
    Owns the single live DisplayHandle of one displayed document.

    Use as `async with RenderSurface() as surface:` so the live handle is
    released on every exit path, including errors.
    """

    def __init__(self, store: Optional[BlobStore] = None, policy: Optional[SandboxPolicy] = None,
                 route: str = BLOB_ROUTE):
        self._store = store if store is not None else blob_store
        self._policy = policy or SandboxPolicy()
        self._route = route.rstrip("/")
        self._current: Optional[DisplayHandle] = None
        # Tokens this surface issued and has not yet released
        self._issued: Set[str] = set()

    @property
    def policy(self) -> SandboxPolicy:
        return self._policy

    @property
    def current(self) -> Optional[DisplayHandle]:
        return self._current

    async def present(self, doc: RenderableDocument) -> DisplayHandle:
        """
        Replace whatever is displayed with `doc`.
        No suspension point between releasing the old handle and registering
        the new one, so two handles are never live at once.
        """
        if self._current is not None:
            self.dispose(self._current)

        token = self._store.put(doc.html.encode("utf-8"), sandbox=self._policy.attribute)
        self._issued.add(token)
        handle = DisplayHandle(
            token=token,
            url=f"{self._route}/{token}",
            policy=self._policy,
            base_url=doc.base_url,
        )
        self._current = handle
        logger.info(f"presented {handle.url} (base {doc.base_url})", extra={"context": "surface"})
        return handle

    def dispose(self, handle: Optional[DisplayHandle]) -> None:
        """
        Release `handle`. Safe to call repeatedly or with None.
        Handles issued by another surface are left alone.
        """
        if handle is None or handle.released:
            return
        if handle.token not in self._issued:
            logger.warning(f"ignoring dispose of foreign handle {handle.url}", extra={"context": "surface"})
            return
        self._issued.discard(handle.token)
        self._store.revoke(handle.token)
        handle.released = True
        if self._current is handle:
            self._current = None
        logger.info(f"disposed {handle.url}", extra={"context": "surface"})

    def close(self) -> None:
        self.dispose(self._current)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
        return False


def embed_markup(handle: DisplayHandle, title: str = "Archived Content") -> str:
    """<iframe> a host page uses to display a handle under its sandbox policy."""
    return (
        f'<iframe src="{html.escape(handle.url, quote=True)}" '
        f'style="width: 100%; height: 100%; border: none" '
        f'title="{html.escape(title, quote=True)}" '
        f'sandbox="{handle.policy.attribute}"></iframe>'
    )
