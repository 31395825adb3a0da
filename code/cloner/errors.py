# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


class CloneError(Exception):
    """Base class for errors raised by the cloning engine."""


class ResolutionError(CloneError):
    """A source or target guild could not be found in the bot's cache."""

    def __init__(self, role: str, ref):
        self.role = role
        self.ref = ref
        super().__init__(
            f"{role.capitalize()} server not found or bot is not a member: {ref}"
        )


class AssetFetchError(CloneError):
    """Downloading an image (emoji or guild icon) failed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not fetch {url}: {reason}")
