"""pmvault core - configuration and the async workspace."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pmvault.core.workspace import Workspace

__all__ = ["Workspace"]


def __getattr__(name: str):
    if name == "Workspace":
        from pmvault.core.workspace import Workspace

        return Workspace
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
