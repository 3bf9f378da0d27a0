"""
Replay fetching module.
Retrieves archived HTML for a memento together with the URL the replay
service finally answered from.
"""

import time
from typing import Union

import httpx

from archive.errors import FetchError, NetworkError
from archive.models import FetchedMemento, MementoReference
from playback.config import ARCHIVE_BASE_URL, REPLAY_PATH
from playback.logger import setup_logger

logger = setup_logger("playback.fetch")


class MementoFetcher:
    """
    Fetches mementos from the replay service.
    The client is owned by the caller; this class never closes it.
    """

    def __init__(self, client: httpx.AsyncClient, archive_base_url: str = ARCHIVE_BASE_URL,
                 replay_path: str = REPLAY_PATH):
        self._client = client
        self._archive_base_url = archive_base_url.rstrip("/")
        self._replay_path = "/" + replay_path.strip("/")

    def playback_url(self, ref: MementoReference) -> str:
        """
        <replay path>/<timestamp>/<original url>.
        The original URL is appended verbatim: the replay service matches it
        literally against stored capture keys, so it must not be re-encoded.
        """
        return f"{self._archive_base_url}{self._replay_path}/{ref.archive_timestamp}/{ref.original_url}"

    def resolve(self, target: Union[MementoReference, str]) -> str:
        if isinstance(target, MementoReference):
            return self.playback_url(target)
        if target.startswith("/"):
            return f"{self._archive_base_url}{target}"
        return target

    async def fetch(self, target: Union[MementoReference, str]) -> FetchedMemento:
        """
        Fetch a memento by reference or by raw playback URL.
        Raises FetchError on non-2xx, NetworkError when no usable response arrives.
        """
        url = self.resolve(target)
        start_time = time.time()
        logger.info(f"GET {url}", extra={"context": "fetch"})

        try:
            r = await self._client.get(url)
        except httpx.RequestError as e:
            # TransportError, or TooManyRedirects on a replay redirect loop
            logger.error(f"request failed for {url}: {e}", extra={"context": "fetch"})
            raise NetworkError(url, str(e) or type(e).__name__) from e

        fetch_time_ms = int((time.time() - start_time) * 1000)
        if not (200 <= r.status_code < 300):
            logger.warning(f"{url} -> {r.status_code} in {fetch_time_ms}ms", extra={"context": "fetch"})
            raise FetchError(r.status_code, url)

        ct = r.headers.get("Content-Type", "").lower()
        if "text/html" not in ct:
            logger.warning(f"{url} served non-HTML content type {ct!r}", extra={"context": "fetch"})

        canonical_url = str(r.url)
        logger.info(
            f"{url} -> {r.status_code} in {fetch_time_ms}ms, {len(r.content)} bytes, base {canonical_url}",
            extra={"context": "fetch"},
        )
        return FetchedMemento(
            raw_html=r.text,
            canonical_url=canonical_url,
            requested_url=url,
            http_status=r.status_code,
            content_type=ct,
        )
