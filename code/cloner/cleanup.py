# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
from typing import Iterable, List

from cloner.context import CloneOptions, RunContext
from cloner.pacing import ActionType


def _me(guild):
    return getattr(guild, "me", None)


def deletable_channels(guild) -> List:
    me = _me(guild)
    if me is None:
        return []
    return [ch for ch in guild.channels if ch.permissions_for(me).manage_channels]


def deletable_roles(guild) -> List:
    me = _me(guild)
    top = getattr(getattr(me, "top_role", None), "position", 0) if me else 0
    can_manage = bool(me and me.guild_permissions.manage_roles)
    return [
        r
        for r in guild.roles
        if not r.is_default() and not r.managed and can_manage and r.position < top
    ]


def deletable_emojis(guild) -> List:
    me = _me(guild)
    if me is None:
        return []
    perms = me.guild_permissions
    if not (perms.manage_emojis or perms.administrator):
        return []
    return [e for e in guild.emojis if not getattr(e, "managed", False)]


class CleanupPhase:
    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    async def _delete_all(self, items: Iterable, label: str) -> bool:
        """
        Delete one entity at a time. Returns False once the run is stopped.
        """
        for item in list(items):
            if self.ctx.stopped:
                return False
            try:
                await item.delete(reason="Server Cloner")
                self.ctx.log("info", "[🗑️] Deleted %s: %s", label, item.name)
                await self.ctx.pacing.pause(ActionType.DELETE)
            except Exception as e:
                self.ctx.fail("[⛔] Failed to delete %s %s: %s", label, item.name, e)
        return True

    async def run(self, guild, opts: CloneOptions) -> None:
        self.ctx.log("info", "[🗑️] Cleaning target server...")

        if opts.delete_channels:
            if not await self._delete_all(deletable_channels(guild), "channel"):
                return

        if opts.delete_roles:
            if not await self._delete_all(deletable_roles(guild), "role"):
                return

        if opts.delete_emojis:
            if not await self._delete_all(deletable_emojis(guild), "emoji"):
                return

        self.ctx.log("info", "Cleanup step finished.")
