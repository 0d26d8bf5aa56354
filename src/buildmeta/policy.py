"""Policy configuration for dynamic library path computation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, get_args

from buildmeta.errors import ValidationError

MissingLibdirPolicy = Literal["warn", "allow"]


@dataclass(frozen=True, slots=True)
class Policy:
    missing_libdir: MissingLibdirPolicy = "warn"

    def __post_init__(self) -> None:
        if self.missing_libdir not in get_args(MissingLibdirPolicy):
            raise ValidationError(
                f"Unsupported missing_libdir policy value: {self.missing_libdir}",
                hint="Use 'warn' or 'allow'.",
            )
