# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
from typing import Optional, Tuple

from cloner.errors import ResolutionError


class GuildResolver:
    def __init__(self, bot):
        self.bot = bot

    def _coerce_id(self, ref) -> Optional[int]:
        if ref is None or isinstance(ref, bool):
            return None
        if hasattr(ref, "id") and not isinstance(ref, (int, str)):
            ref = ref.id
        try:
            return int(str(ref).strip())
        except (TypeError, ValueError):
            return None

    def resolve(self, ref, role: str = "guild"):
        """
        Look a guild up in the bot's cache. Accepts an id (int or numeric
        string) or a guild object, which is re-read from the cache so a
        guild the bot has left is not used.
        """
        gid = self._coerce_id(ref)
        guild = self.bot.get_guild(gid) if gid is not None else None
        if guild is None:
            raise ResolutionError(role, ref)
        return guild

    def resolve_pair(self, source_ref, target_ref) -> Tuple[object, object]:
        source = self.resolve(source_ref, "source")
        target = self.resolve(target_ref, "target")
        return source, target
