# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================

from __future__ import annotations
from typing import Optional

from cloner.assets import AssetFetcher
from cloner.context import RunContext
from cloner.pacing import ActionType


def icon_url(guild) -> Optional[str]:
    icon = getattr(guild, "icon", None)
    if not icon:
        return None
    try:
        return str(icon.with_format("png").with_size(1024).url)
    except AttributeError:
        return str(getattr(icon, "url", icon))


class MetadataSynchronizer:
    """
    Copies the guild name and icon. Purely cosmetic: errors are logged and
    never counted against the run.
    """

    def __init__(self, ctx: RunContext, fetcher: AssetFetcher):
        self.ctx = ctx
        self.fetcher = fetcher

    async def run(self, source, target) -> None:
        if self.ctx.stopped:
            return
        self.ctx.log("info", "[🏠] Updating server info...")
        try:
            await target.edit(name=source.name, reason="Server Cloner")
            url = icon_url(source)
            if url:
                if self.ctx.stopped:
                    return
                image = await self.fetcher.fetch(url)
                if self.ctx.stopped:
                    return
                await target.edit(icon=image.data, reason="Server Cloner")
            self.ctx.log("info", "[🏠] Server info updated.")
            await self.ctx.pacing.pause(ActionType.GUILD)
        except Exception as e:
            self.ctx.log("warning", "[⚠️] Failed to update info: %s", e)
