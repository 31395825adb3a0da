# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


import contextvars

clone_label = contextvars.ContextVar("clone_label", default=None)


def set_clone_label(source_name: str, target_name: str) -> contextvars.Token:
    return clone_label.set(f"{source_name} → {target_name}")


def reset_clone_label(token: contextvars.Token) -> None:
    clone_label.reset(token)


def format_prefix() -> str:
    """
    Returns something like "[Source → Target] " while a clone run is
    active in this task/context, else "".
    """
    label = clone_label.get()
    if label:
        return f"[{label}] "
    return ""
