# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================

from __future__ import annotations

from cloner.assets import AssetFetcher, shrink_for_emoji
from cloner.context import RunContext
from cloner.pacing import ActionType


class EmojiReplicator:
    def __init__(self, ctx: RunContext, fetcher: AssetFetcher, shrink: bool = True):
        self.ctx = ctx
        self.fetcher = fetcher
        self.shrink = shrink

    async def _prepare(self, emoji):
        image = await self.fetcher.fetch(str(emoji.url))
        if not self.shrink:
            return image
        try:
            return await shrink_for_emoji(image)
        except Exception as e:
            # Upload the original and let Discord decide.
            self.ctx.log("warning", "[⚠️] Could not shrink emoji %s: %s", emoji.name, e)
            return image

    async def run(self, source, target) -> None:
        self.ctx.log("info", "[😊] Cloning emojis...")

        for emoji in list(source.emojis):
            if self.ctx.stopped:
                return
            try:
                image = await self._prepare(emoji)
                await target.create_custom_emoji(
                    name=emoji.name, image=image.data, reason="Server Cloner"
                )
                self.ctx.stats.emojis_created += 1
                self.ctx.log("info", "[😊] Created emoji: %s", emoji.name)
                await self.ctx.pacing.pause(ActionType.EMOJI)
            except Exception as e:
                self.ctx.fail("[⛔] Failed to clone emoji %s: %s", emoji.name, e)
