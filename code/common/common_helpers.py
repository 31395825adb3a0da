# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from typing import Mapping, Optional


def resolve_clone_options(
    config,
    overrides: Optional[Mapping[str, object]] = None,
) -> dict:
    """
    Precedence:
      1) per-invocation overrides (None means "not given")
      2) environment
      3) defaults

    Override keys may be given in either form: "DELETE_ROLES" or "delete_roles".
    Unknown keys are ignored.
    """
    eff = dict(config.default_clone_options())

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        norm = str(key).strip().upper()
        if norm not in eff:
            continue
        eff[norm] = bool(value)

    return eff
