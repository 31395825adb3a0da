import io
import os

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from PIL import Image

from cloner.assets import AssetFetcher, EncodedImage, shrink_for_emoji
from cloner.errors import AssetFetchError

PNG_BYTES = b"\x89PNG\r\n\x1a\nnot-really-a-png"


async def _png(request):
    return web.Response(body=PNG_BYTES, content_type="image/png")


async def _gif(request):
    return web.Response(body=b"GIF89a", headers={"Content-Type": "image/gif; x=1"})


async def _missing(request):
    return web.Response(status=404)


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get("/emoji.png", _png)
    app.router.add_get("/emoji.gif", _gif)
    app.router.add_get("/missing.png", _missing)
    async with TestServer(app) as srv:
        yield srv


async def test_fetch_returns_bytes_and_mime(server):
    fetcher = AssetFetcher()
    try:
        image = await fetcher.fetch(str(server.make_url("/emoji.png")))
        gif = await fetcher.fetch(str(server.make_url("/emoji.gif")))
    finally:
        await fetcher.close()

    assert image.data == PNG_BYTES
    assert image.mime_type == "image/png"
    assert image.data_uri.startswith("data:image/png;base64,iVBORw0KGgo")
    assert gif.mime_type == "image/gif"
    assert gif.animated


async def test_http_error_raises_asset_fetch_error(server):
    fetcher = AssetFetcher()
    url = str(server.make_url("/missing.png"))
    try:
        with pytest.raises(AssetFetchError) as exc:
            await fetcher.fetch(url)
    finally:
        await fetcher.close()
    assert exc.value.url == url
    assert exc.value.reason == "HTTP 404"


async def test_transport_error_raises_asset_fetch_error(server):
    url = str(server.make_url("/emoji.png"))
    await server.close()
    fetcher = AssetFetcher()
    try:
        with pytest.raises(AssetFetchError):
            await fetcher.fetch(url)
    finally:
        await fetcher.close()


async def test_borrowed_session_is_not_closed(server):
    import aiohttp

    async with aiohttp.ClientSession() as session:
        fetcher = AssetFetcher(session)
        await fetcher.fetch(str(server.make_url("/emoji.png")))
        await fetcher.close()
        assert not session.closed


def _noise_png(size):
    img = Image.frombytes("RGBA", (size, size), os.urandom(size * size * 4))
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


async def test_small_images_are_untouched():
    image = EncodedImage(data=b"tiny")
    assert await shrink_for_emoji(image) is image


async def test_large_static_image_is_downscaled():
    raw = _noise_png(512)
    assert len(raw) > 262_144

    shrunk = await shrink_for_emoji(EncodedImage(data=raw, mime_type="image/png"))

    assert len(shrunk) <= 262_144
    assert Image.open(io.BytesIO(shrunk.data)).size == (128, 128)
