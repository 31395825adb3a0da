# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================

import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)
CURRENT_VERSION = "v1.2.0"

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


class Config:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = (logger or logging.getLogger(__name__)).getChild(
            self.__class__.__name__
        )

        def _str(key: str, env_default: Optional[str] = None) -> Optional[str]:
            v = os.getenv(key)
            if v is None or v.strip() == "":
                v = env_default
            return v

        def _int(key: str, env_default: str = "0") -> int:
            raw = _str(key, env_default)
            try:
                return int(str(raw).strip())
            except Exception:
                try:
                    return int(env_default)
                except Exception:
                    return 0

        def _float(key: str, env_default: str = "0") -> float:
            raw = _str(key, env_default)
            try:
                value = float(str(raw).strip())
            except Exception:
                value = float(env_default)
            return max(0.0, value)

        def _bool(key: str, default: bool) -> bool:
            raw = _str(key)
            if raw is None:
                return default
            tok = raw.strip().lower()
            if tok in _TRUTHY:
                return True
            if tok in _FALSY:
                return False
            self.logger.warning(
                "[⚠️] Ignoring unrecognised boolean %s=%r; using %s", key, raw, default
            )
            return default

        self._bool = _bool

        self.BOT_TOKEN = _str("BOT_TOKEN")
        self.LOG_LEVEL = (_str("LOG_LEVEL", "INFO") or "INFO").upper()

        self.COMMAND_USERS = self._parse_ids(_str("COMMAND_USERS", "") or "")
        self.COMMAND_GUILD_IDS = self._parse_ids(_str("COMMAND_GUILD_IDS", "") or "")

        self.DELETE_DELAY_SECONDS = _float("DELETE_DELAY_SECONDS", "5")
        self.CREATE_DELAY_SECONDS = _float("CREATE_DELAY_SECONDS", "5")
        self.EMOJI_DELAY_SECONDS = _float("EMOJI_DELAY_SECONDS", "10")

        self.SHRINK_EMOJIS = _bool("SHRINK_EMOJIS", True)
        self.PROGRESS_BUFFER_LINES = _int("PROGRESS_BUFFER_LINES", "50")

    def _parse_ids(self, raw: str) -> list[int]:
        ids = []
        for tok in str(raw).split(","):
            tok = tok.strip()
            if tok:
                try:
                    ids.append(int(tok))
                except ValueError:
                    self.logger.warning("[⚠️] Ignoring non-numeric id %r", tok)
        return ids

    def default_clone_options(self) -> dict:
        """
        Phase toggles for a clone run. Environment variables of the same name
        override the built-in defaults.
        """
        defaults = {
            "DELETE_CHANNELS": True,
            "DELETE_ROLES": True,
            "DELETE_EMOJIS": True,
            "CLONE_CHANNELS": True,
            "CLONE_ROLES": True,
            "CLONE_EMOJIS": False,
            "UPDATE_INFO": False,
        }
        return {key: self._bool(key, value) for key, value in defaults.items()}

    def pacing_intervals(self) -> dict[str, float]:
        return {
            "delete": self.DELETE_DELAY_SECONDS,
            "create": self.CREATE_DELAY_SECONDS,
            "emoji": self.EMOJI_DELAY_SECONDS,
        }
