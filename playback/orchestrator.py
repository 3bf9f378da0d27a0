from enum import Enum
from typing import Optional, Tuple, Union

import httpx

from archive.errors import ArchiveError
from archive.fetcher import MementoFetcher
from archive.models import MementoReference, SearchHit
from archive.search import SearchResolver
from rendering.models import DisplayHandle, RenderableDocument
from rendering.rewriter import DocumentRewriter
from rendering.surface import RenderSurface
from playback.config import REQUEST_TIMEOUT, USER_AGENT
from playback.logger import setup_logger

logger = setup_logger("playback.orchestrator")


class PlaybackState(Enum):
    IDLE = "IDLE"
    SEARCHING = "SEARCHING"
    RESULTS_SHOWN = "RESULTS_SHOWN"
    FETCHING = "FETCHING"
    RENDERED = "RENDERED"
    ERROR = "ERROR"


class PlaybackOrchestrator:
    """
    query -> results -> selection -> fetch -> rewrite -> render.

    Invariants:
    - Last request wins, per request kind: searches supersede searches and
      plays (select/fetch_url) supersede plays. Each request takes a new
      generation of its kind and applies its outcome only if that generation
      is still current when its I/O returns. The two kinds never cancel each
      other.
    - A failed request never blanks an existing render.
    - Only the render transition creates or disposes the DisplayHandle.
    """

    def __init__(self, resolver: Optional[SearchResolver] = None, fetcher: Optional[MementoFetcher] = None,
                 rewriter: Optional[DocumentRewriter] = None, surface: Optional[RenderSurface] = None,
                 client: Optional[httpx.AsyncClient] = None):
        # A client is only created (and later closed) here when a default
        # resolver or fetcher needs one.
        self._owns_client = False
        if client is None and (resolver is None or fetcher is None):
            client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True
        self._client = client

        self._resolver = resolver or SearchResolver(client)
        self._fetcher = fetcher or MementoFetcher(client)
        self._rewriter = rewriter or DocumentRewriter()
        self._surface = surface or RenderSurface()

        self._search_generation = 0
        self._play_generation = 0
        self.state = PlaybackState.IDLE
        self.results: Tuple[SearchHit, ...] = ()
        self.document: Optional[RenderableDocument] = None
        self.error: Optional[str] = None
        self.last_error: Optional[ArchiveError] = None
        self.searching = False
        self.loading = False

    @property
    def handle(self) -> Optional[DisplayHandle]:
        return self._surface.current

    def _is_stale(self, generation: int, current: int, what: str) -> bool:
        if generation != current:
            logger.info(
                f"discarding stale {what} (generation {generation}, current {current})",
                extra={"context": "orchestrator"},
            )
            return True
        return False

    async def submit(self, query: str) -> Tuple[SearchHit, ...]:
        """
        Any state -> SEARCHING -> RESULTS_SHOWN | ERROR.
        Prior results are dropped immediately; the rendered document is kept.
        """
        self._search_generation += 1
        generation = self._search_generation
        self.state = PlaybackState.SEARCHING
        self.searching = True
        self.results = ()
        self.error = None
        self.last_error = None

        try:
            hits = await self._resolver.search(query)
        except ArchiveError as e:
            if not self._is_stale(generation, self._search_generation, "search failure"):
                self.searching = False
                self.results = ()
                self._fail(f"Search error: {e}", e)
            return ()

        if self._is_stale(generation, self._search_generation, "search results"):
            return ()

        self.searching = False
        self.results = tuple(hits)
        self.state = PlaybackState.RESULTS_SHOWN
        return self.results

    async def select(self, hit: Union[SearchHit, int]) -> Optional[DisplayHandle]:
        """RESULTS_SHOWN -> FETCHING. `hit` may be a SearchHit or an index into results."""
        if isinstance(hit, int):
            if not 0 <= hit < len(self.results):
                raise IndexError(f"no search result #{hit} (have {len(self.results)})")
            hit = self.results[hit]
        return await self._play(hit.reference())

    async def fetch_url(self, url: Union[str, MementoReference]) -> Optional[DisplayHandle]:
        """Any state -> FETCHING, without a prior search."""
        return await self._play(url)

    async def _play(self, target: Union[str, MementoReference]) -> Optional[DisplayHandle]:
        """
        FETCHING -> RENDERED on success, FETCHING -> ERROR on failure.
        On failure the previously rendered document stays displayed.
        """
        self._play_generation += 1
        generation = self._play_generation
        self.state = PlaybackState.FETCHING
        self.loading = True
        self.error = None
        self.last_error = None

        try:
            fetched = await self._fetcher.fetch(target)
        except ArchiveError as e:
            if not self._is_stale(generation, self._play_generation, "fetch failure"):
                self.loading = False
                self._fail(f"Playback error: {e}", e)
            return None

        if self._is_stale(generation, self._play_generation, "fetch result"):
            return None

        doc = self._rewriter.rewrite(fetched.raw_html, fetched.canonical_url)
        # present() disposes the previous handle before registering the new one
        handle = await self._surface.present(doc)
        self.document = doc
        self.loading = False
        self.state = PlaybackState.RENDERED
        return handle

    def _fail(self, message: str, err: ArchiveError) -> None:
        logger.error(message, extra={"context": "orchestrator"})
        self.error = message
        self.last_error = err
        self.state = PlaybackState.ERROR

    def clear_display(self) -> None:
        """Explicitly drop the rendered document and release its handle."""
        self._surface.close()
        self.document = None
        if self.state == PlaybackState.RENDERED:
            self.state = PlaybackState.IDLE

    async def aclose(self) -> None:
        self._surface.close()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
