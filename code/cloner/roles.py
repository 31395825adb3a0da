# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
from typing import List

from cloner.context import RunContext
from cloner.pacing import ActionType


def clonable_roles(guild) -> List:
    """Source roles worth copying, highest position first."""
    roles = [r for r in guild.roles if not r.is_default() and not r.managed]
    return sorted(roles, key=lambda r: r.position, reverse=True)


class RoleReplicator:
    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    async def run(self, source, target) -> None:
        self.ctx.log("info", "[👑] Cloning roles...")

        for role in clonable_roles(source):
            if self.ctx.stopped:
                return
            try:
                new_role = await target.create_role(
                    name=role.name,
                    colour=role.colour,
                    permissions=role.permissions,
                    hoist=role.hoist,
                    mentionable=role.mentionable,
                    reason="Server Cloner",
                )
                self.ctx.role_map.record(role.id, new_role)
                self.ctx.stats.roles_created += 1
                self.ctx.log("info", "[👑] Created role: %s", role.name)
                await self.ctx.pacing.pause(ActionType.ROLE)
            except Exception as e:
                self.ctx.fail("[⛔] Failed to create role %s: %s", role.name, e)

        # Positions are not fixed up afterwards; every reorder is another
        # rate-limited call and creation order is close enough.
