# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import discord

from cloner.context import RoleMap

logger = logging.getLogger("cloner.overwrites")

ROLE = "role"
MEMBER = "member"


@dataclass(frozen=True)
class SourceOverwrite:
    subject_id: int
    kind: str
    allow: int
    deny: int
    # Name of the source role, used for the by-name fallback.
    subject_name: Optional[str] = None


@dataclass(frozen=True)
class TranslatedOverwrite:
    subject: object
    kind: str
    allow: int
    deny: int

    @property
    def subject_id(self) -> int:
        return int(self.subject.id)


def _kind_of(raw_type) -> str:
    if raw_type in (0, "role", "ROLE"):
        return ROLE
    return MEMBER


def _bits(value) -> int:
    return int(getattr(value, "value", value) or 0)


class OverwriteMapper:
    """
    Translates permission overwrites from the source guild's id space into
    the target's. Member overwrites pass through; role overwrites are
    resolved through the RoleMap, then by role name, else dropped.
    """

    def __init__(self, role_map: RoleMap):
        self.role_map = role_map

    def read(self, channel) -> List[SourceOverwrite]:
        """Raw overwrite records of a source category or channel."""
        raw = (
            getattr(channel, "permission_overwrites", None)
            or getattr(channel, "_permission_overwrites", None)
            or getattr(channel, "_overwrites", None)
        )
        guild = getattr(channel, "guild", None)

        out: List[SourceOverwrite] = []
        for ow in raw or []:
            kind = _kind_of(getattr(ow, "type", None))
            sid = int(getattr(ow, "id"))
            name = None
            if kind == ROLE and guild is not None:
                src_role = guild.get_role(sid)
                name = src_role.name if src_role is not None else None
            out.append(
                SourceOverwrite(
                    subject_id=sid,
                    kind=kind,
                    allow=_bits(getattr(ow, "allow", 0)),
                    deny=_bits(getattr(ow, "deny", 0)),
                    subject_name=name,
                )
            )
        return out

    def _resolve_role(self, ow: SourceOverwrite, target_guild):
        role = self.role_map.target_role(ow.subject_id)
        if role is not None:
            return role

        tid = self.role_map.get(ow.subject_id)
        if tid is not None:
            role = target_guild.get_role(tid)
            if role is not None:
                return role

        if ow.subject_name is None:
            return None
        return discord.utils.get(target_guild.roles, name=ow.subject_name)

    def map(
        self, overwrites: Iterable[SourceOverwrite], target_guild
    ) -> List[TranslatedOverwrite]:
        mapped: List[TranslatedOverwrite] = []
        for ow in overwrites:
            if ow.kind != ROLE:
                mapped.append(
                    TranslatedOverwrite(
                        subject=discord.Object(id=ow.subject_id),
                        kind=ow.kind,
                        allow=ow.allow,
                        deny=ow.deny,
                    )
                )
                continue

            role = self._resolve_role(ow, target_guild)
            if role is None:
                logger.debug(
                    "Dropping overwrite for unresolved role %s (%s)",
                    ow.subject_name,
                    ow.subject_id,
                )
                continue
            mapped.append(
                TranslatedOverwrite(
                    subject=role, kind=ROLE, allow=ow.allow, deny=ow.deny
                )
            )
        return mapped

    def translate(self, channel, target_guild) -> List[TranslatedOverwrite]:
        return self.map(self.read(channel), target_guild)


def to_discord_overwrites(
    translated: Iterable[TranslatedOverwrite],
) -> Dict[object, discord.PermissionOverwrite]:
    """The mapping shape Guild.create_*_channel(overwrites=...) expects."""
    return {
        t.subject: discord.PermissionOverwrite.from_pair(
            discord.Permissions(t.allow), discord.Permissions(t.deny)
        )
        for t in translated
    }
