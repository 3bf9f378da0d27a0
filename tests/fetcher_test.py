"""
Verification Scenarios for replay fetching
"""

import unittest

import httpx

from archive.errors import FetchError, NetworkError
from archive.fetcher import MementoFetcher
from archive.models import MementoReference

ARCHIVE = "http://archive.test"


class TestMementoFetcher(unittest.IsolatedAsyncioTestCase):
    def _fetcher(self, handler):
        self.requests = []

        def recording(request):
            self.requests.append(request)
            return handler(request)

        self.client = httpx.AsyncClient(transport=httpx.MockTransport(recording), follow_redirects=True)
        return MementoFetcher(self.client, archive_base_url=ARCHIVE)

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_playback_url_is_verbatim(self):
        """Scenario: the original URL is appended literally, never percent-encoded."""
        fetcher = self._fetcher(lambda r: httpx.Response(200, text="<html></html>"))
        ref = MementoReference("20200101120000", "http://a.com/page?x=1")

        self.assertEqual(
            fetcher.playback_url(ref),
            "http://archive.test/solrwayback/services/web/20200101120000/http://a.com/page?x=1",
        )
        await fetcher.fetch(ref)
        self.assertIn("20200101120000/http://a.com/page?x=1", str(self.requests[0].url))
        self.assertNotIn("%3A", str(self.requests[0].url))

    async def test_canonical_url_follows_redirects(self):
        final = f"{ARCHIVE}/solrwayback/services/web/20200101120005/http://a.com/"

        def handler(request):
            if str(request.url) != final:
                return httpx.Response(302, headers={"Location": final})
            return httpx.Response(200, text="<html>ok</html>", headers={"Content-Type": "text/html"})

        fetcher = self._fetcher(handler)
        fetched = await fetcher.fetch(MementoReference("20200101120000", "http://a.com/"))

        self.assertEqual(fetched.canonical_url, final)
        self.assertEqual(fetched.raw_html, "<html>ok</html>")
        self.assertTrue(fetched.requested_url.endswith("20200101120000/http://a.com/"))
        self.assertEqual(fetched.http_status, 200)

    async def test_non_success_status_raises_fetch_error(self):
        fetcher = self._fetcher(lambda r: httpx.Response(404, text="not archived"))
        with self.assertRaises(FetchError) as cm:
            await fetcher.fetch(MementoReference("20200101120000", "a.com"))
        self.assertEqual(cm.exception.status, 404)
        self.assertTrue(cm.exception.url.endswith("/20200101120000/a.com"))
        self.assertIn("404", str(cm.exception))

    async def test_transport_failure_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = self._fetcher(handler)
        with self.assertRaises(NetworkError) as cm:
            await fetcher.fetch(MementoReference("20200101120000", "a.com"))
        self.assertIn("connection refused", cm.exception.reason)

    async def test_redirect_loop_raises_network_error(self):
        """Scenario: the replay service redirects a capture to itself."""
        fetcher = self._fetcher(lambda r: httpx.Response(302, headers={"Location": str(r.url)}))
        with self.assertRaises(NetworkError) as cm:
            await fetcher.fetch(MementoReference("20200101120000", "a.com"))
        self.assertIsInstance(cm.exception.__cause__, httpx.TooManyRedirects)

    async def test_raw_playback_path_resolves_against_archive(self):
        fetcher = self._fetcher(lambda r: httpx.Response(200, text="x"))
        await fetcher.fetch("/solrwayback/services/web/20200101120000/http://a.com/")
        self.assertEqual(
            str(self.requests[0].url),
            "http://archive.test/solrwayback/services/web/20200101120000/http://a.com/",
        )

    async def test_absolute_raw_url_is_used_as_is(self):
        fetcher = self._fetcher(lambda r: httpx.Response(200, text="x"))
        fetched = await fetcher.fetch("http://other.test/web/20200101120000/http://a.com/")
        self.assertEqual(fetched.canonical_url, "http://other.test/web/20200101120000/http://a.com/")


class TestMementoReference(unittest.TestCase):
    def test_timestamp_must_be_14_digits(self):
        for bad in ("2020", "2020010112000x", "", "202001011200000"):
            with self.assertRaises(ValueError):
                MementoReference(bad, "a.com")

    def test_original_url_required(self):
        with self.assertRaises(ValueError):
            MementoReference("20200101120000", "")


if __name__ == "__main__":
    unittest.main()
