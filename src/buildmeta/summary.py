"""Serializable build metadata summaries and their JSON parser/serializer.

The wire format is the one written by the build tool's metadata crate: a JSON
object with kebab-case keys. Several generations of writers exist, so the
platform information may be present in any of three shapes (``platforms``,
``target-platforms``, ``target-platform``). This module only decodes the shapes;
choosing between them happens in :meth:`buildmeta.platform.BuildPlatforms.from_summary`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from buildmeta.errors import SummaryDecodeError

TargetFeatures = str | tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PlatformSummary:
    triple: str
    target_features: TargetFeatures = "unknown"
    flags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class HostPlatformSummary:
    platform: PlatformSummary
    libdir: Path | None = None


@dataclass(frozen=True, slots=True)
class TargetPlatformSummary:
    platform: PlatformSummary
    libdir: Path | None = None


@dataclass(frozen=True, slots=True)
class BuildPlatformsSummary:
    host: HostPlatformSummary
    targets: tuple[TargetPlatformSummary, ...] = ()


@dataclass(frozen=True, slots=True, order=True)
class NonTestBinarySummary:
    """A non-test executable or library produced by the build."""

    name: str
    kind: str
    path: Path


@dataclass(frozen=True, slots=True)
class BuildMetaSummary:
    target_directory: Path
    base_output_directories: tuple[Path, ...] = ()
    non_test_binaries: dict[str, tuple[NonTestBinarySummary, ...]] = field(default_factory=dict)
    build_script_out_dirs: dict[str, Path] = field(default_factory=dict)
    linked_paths: tuple[Path, ...] = ()
    target_platform: str | None = None
    target_platforms: tuple[PlatformSummary, ...] = ()
    platforms: BuildPlatformsSummary | None = None


def serialize_summary(summary: BuildMetaSummary) -> str:
    payload = summary_to_payload(summary)
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


def summary_to_payload(summary: BuildMetaSummary) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "target-directory": str(summary.target_directory),
        "base-output-directories": [path.as_posix() for path in summary.base_output_directories],
        "non-test-binaries": {
            package_id: [
                {"name": binary.name, "kind": binary.kind, "path": str(binary.path)}
                for binary in binaries
            ]
            for package_id, binaries in summary.non_test_binaries.items()
        },
        "build-script-out-dirs": {
            package_id: path.as_posix()
            for package_id, path in summary.build_script_out_dirs.items()
        },
        "linked-paths": [path.as_posix() for path in summary.linked_paths],
        "target-platform": summary.target_platform,
        "target-platforms": [_platform_payload(item) for item in summary.target_platforms],
    }
    if summary.platforms is not None:
        payload["platforms"] = {
            "host": {
                "platform": _platform_payload(summary.platforms.host.platform),
                "libdir": _optional_path_payload(summary.platforms.host.libdir),
            },
            "targets": [
                {
                    "platform": _platform_payload(target.platform),
                    "libdir": _optional_path_payload(target.libdir),
                }
                for target in summary.platforms.targets
            ],
        }
    return payload


def parse_summary(raw: str) -> BuildMetaSummary:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SummaryDecodeError("Invalid build metadata JSON.", hint=str(exc)) from exc
    return summary_from_payload(payload)


def summary_from_payload(payload: Any) -> BuildMetaSummary:
    if not isinstance(payload, dict):
        raise SummaryDecodeError("Invalid build metadata payload type.")

    target_platform = payload.get("target-platform")
    if target_platform is not None and not isinstance(target_platform, str):
        raise SummaryDecodeError("Invalid build metadata `target-platform` value.")

    platforms_raw = payload.get("platforms")
    return BuildMetaSummary(
        target_directory=Path(_required_str(payload, "target-directory")),
        base_output_directories=tuple(
            Path(item) for item in _required_str_list(payload, "base-output-directories")
        ),
        non_test_binaries=_parse_non_test_binaries(payload),
        build_script_out_dirs={
            package_id: Path(path)
            for package_id, path in _optional_str_dict(payload, "build-script-out-dirs").items()
        },
        linked_paths=tuple(
            Path(item) for item in _optional_str_list(payload, "linked-paths")
        ),
        target_platform=target_platform,
        target_platforms=_parse_target_platforms(payload),
        platforms=None if platforms_raw is None else _parse_build_platforms(platforms_raw),
    )


def read_summary(path: str | Path) -> BuildMetaSummary:
    summary_path = Path(path)
    try:
        raw = summary_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SummaryDecodeError(
            "Build metadata file does not exist.",
            context={"path": str(summary_path)},
        ) from exc
    return parse_summary(raw)


def write_summary(summary: BuildMetaSummary, path: str | Path) -> Path:
    summary_path = Path(path)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.write_text(serialize_summary(summary), encoding="utf-8")
    return summary_path


def _platform_payload(platform: PlatformSummary) -> dict[str, Any]:
    features = platform.target_features
    payload: dict[str, Any] = {
        "triple": platform.triple,
        "target-features": features if isinstance(features, str) else list(features),
    }
    if platform.flags:
        payload["flags"] = list(platform.flags)
    return payload


def _optional_path_payload(path: Path | None) -> str | None:
    return None if path is None else str(path)


def _parse_platform(item: Any, *, where: str) -> PlatformSummary:
    # Older writers stored bare triple strings.
    if isinstance(item, str):
        return PlatformSummary(triple=item)
    if not isinstance(item, dict):
        raise SummaryDecodeError(f"Invalid platform entry in `{where}`.")
    triple = item.get("triple")
    if not isinstance(triple, str) or not triple:
        raise SummaryDecodeError(f"Invalid platform `triple` in `{where}`.")

    features_raw = item.get("target-features", "unknown")
    features: TargetFeatures
    if features_raw in ("unknown", "all"):
        features = features_raw
    elif isinstance(features_raw, list) and all(isinstance(f, str) for f in features_raw):
        features = tuple(features_raw)
    else:
        raise SummaryDecodeError(f"Invalid platform `target-features` in `{where}`.")

    flags_raw = item.get("flags", [])
    if not isinstance(flags_raw, list) or not all(isinstance(f, str) for f in flags_raw):
        raise SummaryDecodeError(f"Invalid platform `flags` in `{where}`.")
    return PlatformSummary(triple=triple, target_features=features, flags=tuple(flags_raw))


def _parse_libdir(item: dict[str, Any], *, where: str) -> Path | None:
    libdir = item.get("libdir")
    if libdir is None:
        return None
    if not isinstance(libdir, str):
        raise SummaryDecodeError(f"Invalid `libdir` in `{where}`.")
    return Path(libdir)


def _parse_build_platforms(value: Any) -> BuildPlatformsSummary:
    if not isinstance(value, dict):
        raise SummaryDecodeError("Invalid build metadata `platforms` value.")
    host_raw = value.get("host")
    if not isinstance(host_raw, dict):
        raise SummaryDecodeError("Invalid build metadata `platforms.host` value.")
    host = HostPlatformSummary(
        platform=_parse_platform(host_raw.get("platform"), where="platforms.host"),
        libdir=_parse_libdir(host_raw, where="platforms.host"),
    )

    targets_raw = value.get("targets", [])
    if not isinstance(targets_raw, list):
        raise SummaryDecodeError("Invalid build metadata `platforms.targets` value.")
    targets: list[TargetPlatformSummary] = []
    for target_raw in targets_raw:
        if not isinstance(target_raw, dict):
            raise SummaryDecodeError("Invalid target entry in `platforms.targets`.")
        targets.append(
            TargetPlatformSummary(
                platform=_parse_platform(target_raw.get("platform"), where="platforms.targets"),
                libdir=_parse_libdir(target_raw, where="platforms.targets"),
            )
        )
    return BuildPlatformsSummary(host=host, targets=tuple(targets))


def _parse_target_platforms(payload: dict[str, Any]) -> tuple[PlatformSummary, ...]:
    value = payload.get("target-platforms", [])
    if not isinstance(value, list):
        raise SummaryDecodeError("Invalid build metadata `target-platforms` value.")
    return tuple(_parse_platform(item, where="target-platforms") for item in value)


def _parse_non_test_binaries(
    payload: dict[str, Any],
) -> dict[str, tuple[NonTestBinarySummary, ...]]:
    value = payload.get("non-test-binaries")
    if not isinstance(value, dict):
        raise SummaryDecodeError("Invalid build metadata `non-test-binaries` value.")
    parsed: dict[str, tuple[NonTestBinarySummary, ...]] = {}
    for package_id, binaries in value.items():
        if not isinstance(binaries, list):
            raise SummaryDecodeError(
                "Invalid non-test binary list.",
                context={"package_id": package_id},
            )
        entries: list[NonTestBinarySummary] = []
        for binary in binaries:
            if not isinstance(binary, dict):
                raise SummaryDecodeError(
                    "Invalid non-test binary entry.",
                    context={"package_id": package_id},
                )
            entries.append(
                NonTestBinarySummary(
                    name=_required_str(binary, "name"),
                    kind=_required_str(binary, "kind"),
                    path=Path(_required_str(binary, "path")),
                )
            )
        parsed[package_id] = tuple(entries)
    return parsed


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise SummaryDecodeError(f"Invalid build metadata `{key}` value.")
    return value


def _required_str_list(payload: dict[str, Any], key: str) -> list[str]:
    if key not in payload:
        raise SummaryDecodeError(f"Missing build metadata `{key}` value.")
    return _optional_str_list(payload, key)


def _optional_str_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise SummaryDecodeError(f"Invalid build metadata `{key}` value.")
    return list(value)


def _optional_str_dict(payload: dict[str, Any], key: str) -> dict[str, str]:
    value = payload.get(key, {})
    if not isinstance(value, dict) or not all(isinstance(item, str) for item in value.values()):
        raise SummaryDecodeError(f"Invalid build metadata `{key}` value.")
    return dict(value)
