"""Dynamic library search paths for running test binaries.

The order produced here mirrors the order Cargo uses when it runs binaries
itself, see
https://doc.rust-lang.org/cargo/reference/environment-variables.html#dynamic-library-paths.
"""

from __future__ import annotations

import os
import sys
import warnings
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import TypeVar

from buildmeta.meta import ExecutionBuildMeta
from buildmeta.observability import MissingLibdirWarning, StructuredLogger
from buildmeta.policy import Policy

T = TypeVar("T")


def dylib_paths(
    meta: ExecutionBuildMeta,
    *,
    diagnostics: StructuredLogger | None = None,
    policy: Policy | None = None,
) -> list[Path]:
    """Return the ordered, duplicate-free library search directories for ``meta``.

    Linked paths that exist on disk come first, then ``deps`` and the base
    directory for every base output directory, then the host and target rustc
    libdirs. Missing libdirs are reported as a diagnostic, never as an error.
    """
    if not isinstance(meta, ExecutionBuildMeta):
        raise TypeError("dylib_paths() requires metadata returned by RawBuildMeta.map_paths().")
    active_policy = policy or Policy()

    libdirs = _libdirs(meta)
    if not libdirs and active_policy.missing_libdir == "warn":
        _report_missing_libdir(meta, diagnostics)

    return list(_unique(_chain(meta, libdirs)))


def dylib_path_envvar(platform: str | None = None) -> str:
    """Name of the environment variable the dynamic linker searches."""
    current = sys.platform if platform is None else platform
    if current in ("win32", "cygwin"):
        return "PATH"
    if current == "darwin":
        # DYLD_LIBRARY_PATH would shadow system libraries.
        return "DYLD_FALLBACK_LIBRARY_PATH"
    return "LD_LIBRARY_PATH"


def dylib_path_env(
    meta: ExecutionBuildMeta,
    env: Mapping[str, str] | None = None,
    *,
    diagnostics: StructuredLogger | None = None,
    policy: Policy | None = None,
) -> dict[str, str]:
    """Return ``{var: value}`` with the search paths prepended to the existing value."""
    source_env = os.environ if env is None else env
    var = dylib_path_envvar()
    paths = [str(path) for path in dylib_paths(meta, diagnostics=diagnostics, policy=policy)]
    existing = source_env.get(var, "")
    if existing:
        paths.extend(entry for entry in existing.split(os.pathsep) if entry)
    return {var: os.pathsep.join(_unique(paths))}


def _chain(meta: ExecutionBuildMeta, libdirs: list[Path]) -> Iterator[Path]:
    # Cargo puts linked paths before base output directories.
    for rel_path in meta.linked_paths:
        joined = meta.target_directory / rel_path
        if _exists(joined):
            yield joined
    for base_output in meta.base_output_directories:
        abs_base = meta.target_directory / base_output
        yield abs_base / "deps"
        yield abs_base
    # Proc-macro test binaries link against the rustc libdir.
    yield from libdirs


def _libdirs(meta: ExecutionBuildMeta) -> list[Path]:
    platforms = meta.build_platforms
    libdirs: list[Path] = []
    if platforms.host_libdir is not None:
        libdirs.append(platforms.host_libdir)
    if platforms.target is not None and platforms.target.libdir is not None:
        libdirs.append(platforms.target.libdir)
    return libdirs


def _exists(path: Path) -> bool:
    # A failed check (e.g. permission denied) counts as absent.
    try:
        return path.exists()
    except OSError:
        return False


def _unique(items: Iterable[T]) -> Iterator[T]:
    seen: set[T] = set()
    for item in items:
        if item not in seen:
            seen.add(item)
            yield item


def _report_missing_libdir(
    meta: ExecutionBuildMeta,
    diagnostics: StructuredLogger | None,
) -> None:
    message = "failed to detect the rustc libdir, may fail to list or run tests"
    if diagnostics is not None:
        diagnostics.log(
            operation="dylib_paths",
            message=message,
            level="warn",
            extra={"target_directory": str(meta.target_directory)},
        )
        return
    warnings.warn(message, MissingLibdirWarning, stacklevel=3)
