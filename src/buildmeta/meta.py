"""Build metadata for raw build output and for remapped test execution.

The two phases are separate classes. :class:`RawBuildMeta` is what a build
invocation (or a decoded summary) produces. :class:`ExecutionBuildMeta` can only
be obtained through :meth:`RawBuildMeta.map_paths`, so code that takes an
``ExecutionBuildMeta`` never sees metadata that skipped path remapping.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Self

from buildmeta.platform import BuildPlatforms
from buildmeta.reuse import TargetDirRemapper
from buildmeta.summary import BuildMetaSummary, NonTestBinarySummary

_TRANSITION_TOKEN = object()


@dataclass(frozen=True, slots=True, kw_only=True)
class BuildMeta:
    """Fields and read-only behaviour shared by both metadata phases.

    All relative paths are relative to ``target_directory``. Containers are
    normalized on construction: sets become sorted tuples and mappings are
    rebuilt in sorted key order, so iteration is deterministic.
    """

    target_directory: Path
    build_platforms: BuildPlatforms
    base_output_directories: tuple[Path, ...] = ()
    # Mappings are read-only views and are left out of the hash.
    non_test_binaries: Mapping[str, tuple[NonTestBinarySummary, ...]] = field(
        default_factory=dict, hash=False
    )
    build_script_out_dirs: Mapping[str, Path] = field(default_factory=dict, hash=False)
    linked_paths: Mapping[Path, frozenset[str]] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_directory", Path(self.target_directory))
        object.__setattr__(
            self,
            "base_output_directories",
            tuple(sorted({Path(path) for path in self.base_output_directories})),
        )
        object.__setattr__(
            self,
            "non_test_binaries",
            MappingProxyType(
                {
                    package_id: tuple(sorted(set(self.non_test_binaries[package_id])))
                    for package_id in sorted(self.non_test_binaries)
                }
            ),
        )
        object.__setattr__(
            self,
            "build_script_out_dirs",
            MappingProxyType(
                {
                    package_id: Path(self.build_script_out_dirs[package_id])
                    for package_id in sorted(self.build_script_out_dirs)
                }
            ),
        )
        object.__setattr__(
            self, "linked_paths", MappingProxyType(_normalize_linked_paths(self.linked_paths))
        )

    def to_summary(self) -> BuildMetaSummary:
        """Convert to the serializable summary.

        The structured ``platforms`` object is always written. The legacy
        ``target_platform`` and ``target_platforms`` fields are filled from the
        same platforms so older readers keep working.
        """
        return BuildMetaSummary(
            target_directory=self.target_directory,
            base_output_directories=self.base_output_directories,
            non_test_binaries=dict(self.non_test_binaries),
            build_script_out_dirs=dict(self.build_script_out_dirs),
            linked_paths=tuple(self.linked_paths),
            target_platform=self.build_platforms.to_target_triple_str(),
            target_platforms=(self.build_platforms.to_target_or_host_summary(),),
            platforms=self.build_platforms.to_summary(),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class RawBuildMeta(BuildMeta):
    """Metadata as produced by a build invocation, before any path remapping."""

    @classmethod
    def new(cls, target_directory: str | Path, build_platforms: BuildPlatforms) -> Self:
        return cls(target_directory=Path(target_directory), build_platforms=build_platforms)

    @classmethod
    def from_summary(cls, summary: BuildMetaSummary) -> Self:
        """Build metadata from a summary written by any supported writer version.

        Raises :class:`~buildmeta.errors.UnsupportedError` for more than one target
        platform and :class:`~buildmeta.errors.InvalidPlatformStringError` for a
        triple that fails to parse.
        """
        build_platforms = BuildPlatforms.from_summary(summary)
        return cls(
            target_directory=summary.target_directory,
            build_platforms=build_platforms,
            base_output_directories=summary.base_output_directories,
            non_test_binaries=summary.non_test_binaries,
            build_script_out_dirs=summary.build_script_out_dirs,
            # Requesting packages are not persisted.
            linked_paths={path: frozenset() for path in summary.linked_paths},
        )

    def map_paths(self, remapper: TargetDirRemapper) -> ExecutionBuildMeta:
        """Remap this metadata for test execution.

        Only the target directory changes. The other paths are relative to it and
        are copied as-is.
        """
        new_target_dir = remapper.new_target_dir()
        return ExecutionBuildMeta(
            target_directory=self.target_directory if new_target_dir is None else new_target_dir,
            build_platforms=self.build_platforms,
            base_output_directories=self.base_output_directories,
            non_test_binaries=self.non_test_binaries,
            build_script_out_dirs=self.build_script_out_dirs,
            linked_paths=self.linked_paths,
            _token=_TRANSITION_TOKEN,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExecutionBuildMeta(BuildMeta):
    """Metadata remapped for test execution. Created only by ``RawBuildMeta.map_paths``."""

    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._token is not _TRANSITION_TOKEN:
            raise TypeError(
                "ExecutionBuildMeta cannot be constructed directly; "
                "use RawBuildMeta.map_paths()."
            )
        BuildMeta.__post_init__(self)


def _normalize_linked_paths(
    linked_paths: Mapping[Path, Iterable[str]],
) -> dict[Path, frozenset[str]]:
    merged: dict[Path, set[str]] = {}
    for path, package_ids in linked_paths.items():
        merged.setdefault(Path(path), set()).update(package_ids)
    return {path: frozenset(merged[path]) for path in sorted(merged)}
