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
import math
from dataclasses import dataclass, field, fields
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

import discord

from cloner import logctx
from cloner.pacing import PacingPolicy

logger = logging.getLogger("cloner")

LogSink = Callable[[str], None]


@dataclass
class CloneOptions:
    delete_channels: bool = True
    delete_roles: bool = True
    delete_emojis: bool = True
    clone_channels: bool = True
    clone_roles: bool = True
    clone_emojis: bool = False
    update_info: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "CloneOptions":
        """
        Accepts the "DELETE_ROLES" style keys produced by
        resolve_clone_options() as well as the attribute names.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            norm = str(key).strip().lower()
            if norm in known and value is not None:
                kwargs[norm] = bool(value)
        return cls(**kwargs)


@dataclass
class CloneStats:
    roles_created: int = 0
    categories_created: int = 0
    channels_created: int = 0
    emojis_created: int = 0
    failed: int = 0

    @property
    def succeeded(self) -> int:
        return (
            self.roles_created
            + self.categories_created
            + self.channels_created
            + self.emojis_created
        )

    @property
    def success_rate(self) -> int:
        total = self.succeeded + self.failed
        if total == 0:
            return 0
        # Half-up rounding; round() would send 12.5 to 12.
        return int(math.floor(100 * self.succeeded / total + 0.5))

    def as_dict(self) -> dict:
        return {
            "roles_created": self.roles_created,
            "categories_created": self.categories_created,
            "channels_created": self.channels_created,
            "emojis_created": self.emojis_created,
            "failed": self.failed,
            "success_rate": self.success_rate,
        }


class RoleMap:
    """
    Source role id -> target role id, filled by the role phase.

    The created target Role objects are kept alongside the ids because
    overwrites have to be keyed by a Role, and the gateway cache of the
    target guild may not have caught up with a freshly created role yet.
    """

    def __init__(self):
        self._ids: Dict[int, int] = {}
        self._roles: Dict[int, discord.Role] = {}

    def record(self, source_id: int, target_role) -> None:
        self._ids[int(source_id)] = int(target_role.id)
        self._roles[int(target_role.id)] = target_role

    def get(self, source_id: int) -> Optional[int]:
        return self._ids.get(int(source_id))

    def target_role(self, source_id: int):
        tid = self.get(source_id)
        return self._roles.get(tid) if tid is not None else None

    def items(self) -> Iterator[Tuple[int, int]]:
        return iter(self._ids.items())

    def __contains__(self, source_id) -> bool:
        return int(source_id) in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __getitem__(self, source_id: int) -> int:
        return self._ids[int(source_id)]


class CancellationToken:
    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class RunContext:
    """Everything a phase needs for one clone run."""

    pacing: PacingPolicy
    sink: Optional[LogSink] = None
    role_map: RoleMap = field(default_factory=RoleMap)
    stats: CloneStats = field(default_factory=CloneStats)
    token: CancellationToken = field(default_factory=CancellationToken)
    categories_by_name: Dict[str, discord.CategoryChannel] = field(
        default_factory=dict
    )

    @property
    def stopped(self) -> bool:
        return self.token.cancelled

    def log(self, level: str, msg: str, *args) -> None:
        """
        Emit a progress line to the module logger (with the run prefix)
        and to the caller's sink, if any.
        """
        text = msg % args if args else msg
        prefix = logctx.format_prefix()

        if level == "debug":
            logger.debug(prefix + text)
        elif level == "warning":
            logger.warning(prefix + text)
        elif level == "error":
            logger.error(prefix + text)
        else:
            logger.info(prefix + text)

        if self.sink is not None and level != "debug":
            try:
                self.sink(text)
            except Exception:
                logger.debug("log sink raised; ignoring", exc_info=True)

    def fail(self, msg: str, *args) -> None:
        self.stats.failed += 1
        self.log("warning", msg, *args)
