# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================

from __future__ import annotations
import asyncio
import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp
from PIL import Image, ImageSequence

from cloner.errors import AssetFetchError

logger = logging.getLogger("cloner.assets")

EMOJI_MAX_BYTES = 262_144


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    mime_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @property
    def animated(self) -> bool:
        return self.mime_type == "image/gif"

    def __len__(self) -> int:
        return len(self.data)


class AssetFetcher:
    """
    Downloads emoji images and guild icons.

    The session is borrowed from the bot when one is given; otherwise a
    private session is opened lazily and closed by close().
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self.session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def fetch(self, url: str) -> EncodedImage:
        session = await self._get_session()
        try:
            async with session.get(url) as resp:
                if resp.status >= 400:
                    raise AssetFetchError(url, f"HTTP {resp.status}")
                raw = await resp.read()
                mime = resp.headers.get("Content-Type", "image/png")
        except AssetFetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AssetFetchError(url, str(e) or e.__class__.__name__) from e

        mime = mime.split(";", 1)[0].strip() or "image/png"
        logger.debug("[🖼️] Fetched %s (%d bytes, %s)", url, len(raw), mime)
        return EncodedImage(data=raw, mime_type=mime)

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()


async def shrink_for_emoji(
    image: EncodedImage, max_bytes: int = EMOJI_MAX_BYTES
) -> EncodedImage:
    """
    Downscale an image that is too large for an emoji slot. Returns the
    input unchanged when it already fits or cannot be made to fit.
    """
    if len(image) <= max_bytes:
        return image

    loop = asyncio.get_running_loop()
    if image.animated:
        data = await loop.run_in_executor(
            None, _sync_shrink_animated, image.data, max_bytes
        )
        return EncodedImage(data=data, mime_type=image.mime_type)

    data = await loop.run_in_executor(None, _sync_shrink_static, image.data, max_bytes)
    if data is image.data:
        return image
    return EncodedImage(data=data, mime_type="image/png")


def _sync_shrink_static(data: bytes, max_bytes: int) -> bytes:
    img = Image.open(io.BytesIO(data)).convert("RGBA")
    img.thumbnail((128, 128), Image.LANCZOS)

    out = io.BytesIO()
    img.save(out, format="PNG", optimize=True)
    result = out.getvalue()
    if len(result) <= max_bytes:
        return result

    out = io.BytesIO()
    img.convert("P", palette=Image.ADAPTIVE).save(out, format="PNG", optimize=True)
    result = out.getvalue()
    return result if len(result) <= max_bytes else data


def _sync_shrink_animated(data: bytes, max_bytes: int) -> bytes:
    img = Image.open(io.BytesIO(data))
    frames, durations = [], []
    for frame in ImageSequence.Iterator(img):
        f = frame.convert("RGBA")
        f.thumbnail((128, 128), Image.LANCZOS)
        frames.append(f)
        durations.append(frame.info.get("duration", 100))

    out = io.BytesIO()
    frames[0].save(
        out,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=0,
        optimize=True,
    )
    result = out.getvalue()
    return result if len(result) <= max_bytes else data
