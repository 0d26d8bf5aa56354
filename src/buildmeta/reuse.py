"""Path remapping used when build output is reused on another machine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Self


class TargetDirRemapper(Protocol):
    def new_target_dir(self) -> Path | None:
        """Return the replacement target directory, or None to keep the original."""


@dataclass(frozen=True, slots=True)
class PathMapper:
    """Remaps the workspace root and target directory of extracted build output."""

    workspace_root: Path | None = None
    target_dir: Path | None = None

    @classmethod
    def noop(cls) -> Self:
        return cls()

    def new_workspace_root(self) -> Path | None:
        return self.workspace_root

    def new_target_dir(self) -> Path | None:
        return self.target_dir
