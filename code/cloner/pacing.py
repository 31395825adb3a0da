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
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger("cloner.pacing")


class ActionType(Enum):
    DELETE = "delete"
    ROLE = "role"
    CATEGORY = "category"
    CHANNEL = "channel"
    EMOJI = "emoji"
    GUILD = "guild"


# Which configured interval ("delete" / "create" / "emoji") each action uses.
_INTERVAL_CLASS = {
    ActionType.DELETE: "delete",
    ActionType.ROLE: "create",
    ActionType.CATEGORY: "create",
    ActionType.CHANNEL: "create",
    ActionType.GUILD: "create",
    ActionType.EMOJI: "emoji",
}

DEFAULT_INTERVALS = {"delete": 5.0, "create": 5.0, "emoji": 10.0}


class PacingPolicy:
    """
    Fixed wait after each successful mutating call.

    The clone run is a single cooperative stream of requests, so a fixed
    interval per action class is enough to stay under Discord's limits.
    """

    def __init__(
        self,
        intervals: Optional[Mapping[str, float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        merged = dict(DEFAULT_INTERVALS)
        merged.update(intervals or {})
        self._intervals: Dict[ActionType, float] = {
            action: float(merged[cls]) for action, cls in _INTERVAL_CLASS.items()
        }
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(cls, config) -> "PacingPolicy":
        return cls(config.pacing_intervals())

    @classmethod
    def none(cls) -> "PacingPolicy":
        return cls({"delete": 0.0, "create": 0.0, "emoji": 0.0})

    def interval(self, action: ActionType) -> float:
        return self._intervals[action]

    async def pause(self, action: ActionType) -> None:
        delay = self._intervals[action]
        if delay <= 0:
            return
        logger.debug("[⏳] Pacing %s for %.1fs", action.value, delay)
        await self._sleep(delay)
