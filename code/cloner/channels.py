# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
from typing import List, Optional

import discord
from discord import ChannelType

from cloner.context import RunContext
from cloner.overwrites import OverwriteMapper, to_discord_overwrites
from cloner.pacing import ActionType

DEFAULT_MAX_BITRATE = 96000


def source_categories(guild) -> List:
    return sorted(
        (c for c in guild.channels if c.type == ChannelType.category),
        key=lambda c: c.position,
    )


def source_channels(guild) -> List:
    """Text and voice channels only; stage, forum and news are not cloned."""
    return sorted(
        (
            c
            for c in guild.channels
            if c.type in (ChannelType.text, ChannelType.voice)
        ),
        key=lambda c: c.position,
    )


def clamp_bitrate(bitrate: int, target) -> int:
    limit = getattr(target, "bitrate_limit", None)
    cap = int(limit) if limit else DEFAULT_MAX_BITRATE
    return min(int(bitrate), cap)


class CategoryReplicator:
    def __init__(self, ctx: RunContext, mapper: OverwriteMapper):
        self.ctx = ctx
        self.mapper = mapper

    async def run(self, source, target) -> None:
        self.ctx.log("info", "[📁] Cloning categories...")

        for category in source_categories(source):
            if self.ctx.stopped:
                return
            try:
                overwrites = self.mapper.translate(category, target)
                new_cat = await target.create_category(
                    category.name,
                    overwrites=to_discord_overwrites(overwrites),
                    position=category.position,
                    reason="Server Cloner",
                )
                self.ctx.categories_by_name.setdefault(category.name, new_cat)
                self.ctx.stats.categories_created += 1
                self.ctx.log("info", "[📁] Created category: %s", category.name)
                await self.ctx.pacing.pause(ActionType.CATEGORY)
            except Exception as e:
                self.ctx.fail(
                    "[⛔] Failed to create category %s: %s", category.name, e
                )


class ChannelReplicator:
    def __init__(self, ctx: RunContext, mapper: OverwriteMapper):
        self.ctx = ctx
        self.mapper = mapper

    def resolve_parent(self, channel, target) -> Optional[discord.CategoryChannel]:
        """
        Match the parent category by name. Ids differ between guilds, so a
        same-named category already present in the target is used as-is.
        """
        parent = getattr(channel, "category", None)
        if parent is None:
            return None
        created = self.ctx.categories_by_name.get(parent.name)
        if created is not None:
            return created
        return discord.utils.get(target.categories, name=parent.name)

    async def _create(self, channel, target, parent, overwrites):
        common = dict(
            category=parent,
            overwrites=to_discord_overwrites(overwrites),
            position=channel.position,
            reason="Server Cloner",
        )
        if channel.type == ChannelType.voice:
            return await target.create_voice_channel(
                channel.name,
                bitrate=clamp_bitrate(channel.bitrate, target),
                user_limit=channel.user_limit,
                **common,
            )
        return await target.create_text_channel(
            channel.name,
            topic=channel.topic or "",
            nsfw=channel.nsfw,
            slowmode_delay=channel.slowmode_delay,
            **common,
        )

    async def run(self, source, target) -> None:
        self.ctx.log("info", "[💬] Cloning channels...")

        for channel in source_channels(source):
            if self.ctx.stopped:
                return
            try:
                overwrites = self.mapper.translate(channel, target)
                parent = self.resolve_parent(channel, target)
                await self._create(channel, target, parent, overwrites)
                self.ctx.stats.channels_created += 1
                self.ctx.log("info", "[💬] Created channel: %s", channel.name)
                await self.ctx.pacing.pause(ActionType.CHANNEL)
            except Exception as e:
                self.ctx.fail("[⛔] Failed to create channel %s: %s", channel.name, e)
