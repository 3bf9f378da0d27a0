"""
Search index client.
Turns a free-text query into memento references via the SolrWayback index.
"""

from typing import Any, Dict, List, Optional

import httpx

from archive.errors import NetworkError, SearchError
from archive.models import MementoReference, SearchHit, to_archive_timestamp
from playback.config import ARCHIVE_BASE_URL, SEARCH_PATH
from playback.logger import setup_logger

logger = setup_logger("playback.search")


class SearchResolver:
    """
    Queries the index service.
    Order of hits is the index's relevance order; nothing is re-ranked here.
    """

    def __init__(self, client: httpx.AsyncClient, archive_base_url: str = ARCHIVE_BASE_URL,
                 search_path: str = SEARCH_PATH):
        self._client = client
        self._search_url = f"{archive_base_url.rstrip('/')}{search_path}"

    async def search(self, query: str) -> List[SearchHit]:
        """
        Empty or whitespace-only queries return [] without touching the network.
        A response without response.docs is an empty result, not an error.
        """
        if not query or not query.strip():
            logger.info("empty query, skipping index request", extra={"context": "search"})
            return []

        params = {"query": query, "grouping": "false"}
        logger.info(f"query={query!r}", extra={"context": "search"})

        try:
            r = await self._client.get(self._search_url, params=params)
        except httpx.RequestError as e:
            # TransportError, or TooManyRedirects on an index redirect loop
            logger.error(f"request failed for {self._search_url}: {e}", extra={"context": "search"})
            raise NetworkError(self._search_url, str(e) or type(e).__name__) from e

        if not (200 <= r.status_code < 300):
            logger.warning(f"index answered {r.status_code}", extra={"context": "search"})
            raise SearchError(r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise SearchError(r.status_code, "malformed JSON") from e

        docs = _extract_docs(data)
        hits = []
        for doc in docs:
            hit = _to_hit(doc)
            if hit is None:
                logger.warning(f"skipping unplayable doc: {doc!r:.200}", extra={"context": "search"})
                continue
            hits.append(hit)

        logger.info(f"{len(hits)} hits for {query!r}", extra={"context": "search"})
        return hits

    async def resolve(self, query: str) -> Dict[str, MementoReference]:
        """Identifier -> MementoReference, in result order."""
        return {hit.identifier: hit.reference() for hit in await self.search(query)}


def _extract_docs(data: Any) -> List[Any]:
    if not isinstance(data, dict):
        return []
    response = data.get("response")
    if not isinstance(response, dict):
        return []
    docs = response.get("docs")
    if not isinstance(docs, list):
        return []
    return docs


def _to_hit(doc: Any) -> Optional[SearchHit]:
    if not isinstance(doc, dict):
        return None
    url = doc.get("url")
    if not url:
        return None

    # wayback_date is the replay key; crawl_date is the fallback
    timestamp = to_archive_timestamp(doc.get("wayback_date")) or to_archive_timestamp(doc.get("crawl_date"))
    if timestamp is None:
        return None

    display_date = doc.get("crawl_date") or doc.get("wayback_date") or ""
    return SearchHit(
        identifier=str(doc.get("id") or f"{timestamp}/{url}"),
        original_url=str(url),
        capture_timestamp=timestamp,
        content_type=_first(doc.get("content_type")),
        display_date=str(display_date),
    )


def _first(value: Any) -> str:
    # content_type is multi-valued in some index schemas
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value or "")
