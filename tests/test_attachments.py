import asyncio
import unittest

from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from chaosbot.attachments import FETCH_FAILED_MESSAGE, fetch_attachment_bytes
from chaosbot.errors import UnprocessableImage

PAYLOAD = b"\x89PNG fake payload" * 64


async def _ok(_request: web.Request) -> web.Response:
    return web.Response(body=PAYLOAD, content_type="image/png")


async def _missing(_request: web.Request) -> web.Response:
    return web.Response(status=404)


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.Response(body=PAYLOAD, content_type="image/png")


class FetchAttachmentTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        app = web.Application()
        app.router.add_get("/ok.png", _ok)
        app.router.add_get("/missing.png", _missing)
        app.router.add_get("/slow.png", _slow)
        self.server = TestServer(app)
        await self.server.start_server()

    async def asyncTearDown(self) -> None:
        await self.server.close()

    async def test_downloads_payload(self) -> None:
        data = await fetch_attachment_bytes(str(self.server.make_url("/ok.png")), max_bytes=1 << 20, timeout=5)
        self.assertEqual(data, PAYLOAD)

    async def test_http_error_is_unprocessable(self) -> None:
        with self.assertRaises(UnprocessableImage):
            await fetch_attachment_bytes(str(self.server.make_url("/missing.png")), max_bytes=1 << 20, timeout=5)

    async def test_size_cap_is_enforced(self) -> None:
        with self.assertRaises(UnprocessableImage) as ctx:
            await fetch_attachment_bytes(str(self.server.make_url("/ok.png")), max_bytes=16, timeout=5)
        self.assertIn("too large", ctx.exception.user_message)

    async def test_non_http_url_is_refused(self) -> None:
        with self.assertRaises(UnprocessableImage):
            await fetch_attachment_bytes("file:///etc/passwd", max_bytes=1 << 20, timeout=5)

    async def test_timeout_is_unprocessable(self) -> None:
        with self.assertRaises(UnprocessableImage) as ctx:
            await fetch_attachment_bytes(str(self.server.make_url("/slow.png")), max_bytes=1 << 20, timeout=0.1)
        self.assertEqual(ctx.exception.user_message, FETCH_FAILED_MESSAGE)

    async def test_refused_connection_is_unprocessable(self) -> None:
        url = f"http://127.0.0.1:{unused_port()}/avatar.png"
        with self.assertRaises(UnprocessableImage) as ctx:
            await fetch_attachment_bytes(url, max_bytes=1 << 20, timeout=5)
        self.assertEqual(ctx.exception.user_message, FETCH_FAILED_MESSAGE)


if __name__ == "__main__":
    unittest.main()
