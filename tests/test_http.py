"""Tests for the HTTP side of the measurers against a local aiohttp server."""

import asyncio
import os
import threading
import unittest
from unittest import mock

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from engine.errors import NoConnectivityError, TransportError
from engine.latency import LatencySampler
from engine.models import Direction
from engine.transfer import TransferMeasurer

CHUNK = 200_000


class SpeedEndpoint(AioHTTPTestCase):
    """A tiny stand-in for the ``__down`` / ``__up`` endpoints."""

    delay = 0.0

    async def get_application(self):
        self.downloads = []
        self.uploads = []
        self.methods = []
        self.headers = []

        app = web.Application()
        app.router.add_get("/__down", self._down)
        app.router.add_post("/__up", self._up)
        app.router.add_get("/unavailable", self._unavailable)
        app.router.add_post("/unavailable", self._unavailable)
        app.router.add_get("/empty", self._empty)
        return app

    async def _down(self, request):
        self.methods.append(request.method)
        self.headers.append(request.headers)
        size = int(request.query["bytes"])
        self.downloads.append(size)
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(body=b"\x00" * size)

    async def _up(self, request):
        self.headers.append(request.headers)
        body = await request.read()
        self.uploads.append(body)
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(text="ok")

    async def _unavailable(self, request):
        self.methods.append(request.method)
        return web.Response(status=503, text="down for maintenance")

    async def _empty(self, request):
        return web.Response(body=b"")

    def url(self, path):
        return str(self.server.make_url(path))


class TestDownload(SpeedEndpoint):
    async def test_single_chunk(self):
        m = TransferMeasurer(
            Direction.DOWNLOAD, url=self.url("/__down"), chunk_size=CHUNK, min_duration=0.0,
        )
        mbps = await m.measure()
        self.assertGreater(mbps, 0)
        self.assertEqual(self.downloads, [CHUNK])

    async def test_requests_bypass_caches(self):
        m = TransferMeasurer(
            Direction.DOWNLOAD, url=self.url("/__down"), chunk_size=CHUNK, min_duration=0.0,
        )
        await m.measure()
        headers = self.headers[0]
        self.assertIn("no-store", headers["Cache-Control"])
        self.assertEqual(headers["Pragma"], "no-cache")
        self.assertEqual(headers["Accept-Encoding"], "identity")

    async def test_repeats_chunks_until_floor(self):
        self.delay = 0.05
        samples = []
        m = TransferMeasurer(
            Direction.DOWNLOAD, url=self.url("/__down"), chunk_size=CHUNK,
            min_duration=0.3, progress_interval=0.0,
        )
        await m.measure(samples.append)
        self.assertGreaterEqual(len(self.downloads), 2)
        self.assertEqual(samples[-1].bytes_transferred, CHUNK * len(self.downloads))

    async def test_http_error_is_transport_error(self):
        m = TransferMeasurer(
            Direction.DOWNLOAD, url=self.url("/unavailable"), chunk_size=CHUNK, min_duration=0.0,
        )
        with self.assertRaises(TransportError) as ctx:
            await m.measure()
        self.assertIn("503", str(ctx.exception))

    async def test_empty_body_is_no_connectivity(self):
        m = TransferMeasurer(
            Direction.DOWNLOAD, url=self.url("/empty"), chunk_size=CHUNK, min_duration=0.0,
        )
        with self.assertRaises(NoConnectivityError):
            await m.measure()


class TestUpload(SpeedEndpoint):
    async def test_posts_full_chunk(self):
        m = TransferMeasurer(
            Direction.UPLOAD, url=self.url("/__up"), chunk_size=CHUNK, min_duration=0.0,
        )
        mbps = await m.measure()
        self.assertGreater(mbps, 0)
        self.assertEqual(len(self.uploads), 1)
        self.assertEqual(len(self.uploads[0]), CHUNK)
        self.assertEqual(self.headers[0]["Content-Type"], "application/octet-stream")

    async def test_payload_is_fresh_each_chunk(self):
        self.delay = 0.05
        m = TransferMeasurer(
            Direction.UPLOAD, url=self.url("/__up"), chunk_size=CHUNK, min_duration=0.15,
        )
        await m.measure()
        self.assertGreaterEqual(len(self.uploads), 2)
        self.assertNotEqual(self.uploads[0], self.uploads[1])
        self.assertTrue(all(len(body) == CHUNK for body in self.uploads))

    async def test_payload_generated_off_the_event_loop(self):
        real_urandom = os.urandom
        threads = []

        def _urandom(size):
            threads.append(threading.get_ident())
            return real_urandom(size)

        m = TransferMeasurer(
            Direction.UPLOAD, url=self.url("/__up"), chunk_size=CHUNK, min_duration=0.0,
        )
        with mock.patch("engine.transfer.os.urandom", side_effect=_urandom):
            await m.measure()
        self.assertTrue(threads)
        self.assertNotIn(threading.get_ident(), threads)
        self.assertEqual(len(self.uploads[0]), CHUNK)

    async def test_progress_counts_sent_bytes(self):
        samples = []
        m = TransferMeasurer(
            Direction.UPLOAD, url=self.url("/__up"), chunk_size=CHUNK,
            min_duration=0.0, progress_interval=0.0,
        )
        await m.measure(samples.append)
        self.assertEqual(samples[-1].bytes_transferred, CHUNK)

    async def test_http_error_is_transport_error(self):
        m = TransferMeasurer(
            Direction.UPLOAD, url=self.url("/unavailable"), chunk_size=CHUNK, min_duration=0.0,
        )
        with self.assertRaises(TransportError):
            await m.measure()


class TestLatencyOverHttp(SpeedEndpoint):
    async def test_five_head_requests(self):
        sampler = LatencySampler(url=self.url("/__down"))
        latency = await sampler.measure()
        self.assertGreater(latency, 0)
        self.assertEqual(self.methods, ["HEAD"] * 5)
        self.assertEqual(self.downloads, [0] * 5)

    async def test_non_2xx_samples_are_discarded(self):
        sampler = LatencySampler(url=self.url("/unavailable"))
        with self.assertRaises(NoConnectivityError):
            await sampler.measure()
        self.assertEqual(len(self.methods), 5)

    async def test_unreachable_server(self):
        sampler = LatencySampler(url="http://127.0.0.1:1/__down", timeout=2.0)
        with self.assertRaises(NoConnectivityError):
            await sampler.measure()


if __name__ == "__main__":
    unittest.main()
