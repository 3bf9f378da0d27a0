"""
Verification Scenarios for search index resolution
"""

import unittest

import httpx

from archive.errors import NetworkError, SearchError
from archive.models import MementoReference, to_archive_timestamp
from archive.search import SearchResolver

ARCHIVE = "http://archive.test"

TWO_DOCS = {
    "response": {
        "docs": [
            {"id": "doc-a", "url": "a.com", "wayback_date": "20200101120000",
             "crawl_date": "2020-01-01T12:00:00Z", "content_type": "text/html"},
            {"id": "doc-b", "url": "b.com", "wayback_date": 20210202000000,
             "content_type": ["application/xhtml+xml"]},
        ]
    }
}


class TestSearchResolver(unittest.IsolatedAsyncioTestCase):
    def _resolver(self, handler):
        self.requests = []

        def recording(request):
            self.requests.append(request)
            return handler(request)

        self.client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        return SearchResolver(self.client, archive_base_url=ARCHIVE)

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_empty_query_skips_network(self):
        resolver = self._resolver(lambda r: httpx.Response(200, json=TWO_DOCS))
        self.assertEqual(await resolver.search(""), [])
        self.assertEqual(await resolver.search("   \t"), [])
        self.assertEqual(self.requests, [])

    async def test_request_shape(self):
        resolver = self._resolver(lambda r: httpx.Response(200, json=TWO_DOCS))
        await resolver.search("climate change")

        request = self.requests[0]
        self.assertEqual(request.url.path, "/solrwayback/services/frontend/solr/search/results/")
        self.assertEqual(request.url.params["query"], "climate change")
        self.assertEqual(request.url.params["grouping"], "false")

    async def test_hits_keep_index_order(self):
        resolver = self._resolver(lambda r: httpx.Response(200, json=TWO_DOCS))
        hits = await resolver.search("example")

        self.assertEqual([h.original_url for h in hits], ["a.com", "b.com"])
        self.assertEqual(hits[0].identifier, "doc-a")
        self.assertEqual(hits[0].capture_timestamp, "20200101120000")
        self.assertEqual(hits[0].display_date, "2020-01-01T12:00:00Z")
        self.assertEqual(hits[0].content_type, "text/html")
        # numeric wayback_date, no crawl_date, multi-valued content type
        self.assertEqual(hits[1].capture_timestamp, "20210202000000")
        self.assertEqual(hits[1].display_date, "20210202000000")
        self.assertEqual(hits[1].content_type, "application/xhtml+xml")

    async def test_missing_docs_is_empty_not_error(self):
        for body in ({"response": {}}, {}, [], {"response": {"docs": None}}):
            resolver = self._resolver(lambda r, body=body: httpx.Response(200, json=body))
            self.assertEqual(await resolver.search("example"), [])
            await self.client.aclose()

    async def test_unplayable_docs_are_skipped(self):
        body = {"response": {"docs": [
            {"url": "no-date.com"},
            {"wayback_date": "20200101120000"},
            "garbage",
            {"url": "c.com", "crawl_date": "2019-05-06T07:08:09Z"},
        ]}}
        resolver = self._resolver(lambda r: httpx.Response(200, json=body))
        hits = await resolver.search("example")

        self.assertEqual(len(hits), 1)
        self.assertEqual(hits[0].capture_timestamp, "20190506070809")
        self.assertEqual(hits[0].identifier, "20190506070809/c.com")

    async def test_error_status_raises(self):
        resolver = self._resolver(lambda r: httpx.Response(503, text="down"))
        with self.assertRaises(SearchError) as cm:
            await resolver.search("example")
        self.assertEqual(cm.exception.status, 503)

    async def test_malformed_json_raises(self):
        resolver = self._resolver(lambda r: httpx.Response(200, text="<html>not json</html>"))
        with self.assertRaises(SearchError) as cm:
            await resolver.search("example")
        self.assertEqual(cm.exception.reason, "malformed JSON")

    async def test_transport_failure_raises_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        resolver = self._resolver(handler)
        with self.assertRaises(NetworkError):
            await resolver.search("example")

    async def test_redirect_loop_raises_network_error(self):
        self.client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(302, headers={"Location": str(r.url)})),
            follow_redirects=True,
        )
        resolver = SearchResolver(self.client, archive_base_url=ARCHIVE)
        with self.assertRaises(NetworkError) as cm:
            await resolver.search("example")
        self.assertIsInstance(cm.exception.__cause__, httpx.TooManyRedirects)

    async def test_resolve_maps_identifiers_to_references(self):
        resolver = self._resolver(lambda r: httpx.Response(200, json=TWO_DOCS))
        mapping = await resolver.resolve("example")

        self.assertEqual(list(mapping), ["doc-a", "doc-b"])
        self.assertEqual(mapping["doc-a"], MementoReference("20200101120000", "a.com"))


class TestArchiveTimestamp(unittest.TestCase):
    def test_normalization(self):
        self.assertEqual(to_archive_timestamp("20200101120000"), "20200101120000")
        self.assertEqual(to_archive_timestamp(20200101120000), "20200101120000")
        self.assertEqual(to_archive_timestamp("2020-01-01T12:00:00Z"), "20200101120000")
        self.assertIsNone(to_archive_timestamp("2020-01-01"))
        self.assertIsNone(to_archive_timestamp(None))


if __name__ == "__main__":
    unittest.main()
