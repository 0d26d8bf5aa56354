"""Public package entrypoint for build output metadata."""

from .dylib import dylib_path_env, dylib_path_envvar, dylib_paths
from .errors import (
    BuildMetaError,
    ErrorCode,
    HostDetectionError,
    InvalidPlatformStringError,
    SummaryDecodeError,
    UnsupportedError,
    ValidationError,
)
from .meta import BuildMeta, ExecutionBuildMeta, RawBuildMeta
from .observability import MissingLibdirWarning, StructuredLogger
from .platform import BuildPlatforms, Platform, PlatformDescriptor
from .policy import Policy
from .reuse import PathMapper, TargetDirRemapper
from .summary import (
    BuildMetaSummary,
    BuildPlatformsSummary,
    HostPlatformSummary,
    NonTestBinarySummary,
    PlatformSummary,
    TargetPlatformSummary,
    parse_summary,
    read_summary,
    serialize_summary,
    write_summary,
)

__all__ = [
    "BuildMeta",
    "BuildMetaError",
    "BuildMetaSummary",
    "BuildPlatforms",
    "BuildPlatformsSummary",
    "ErrorCode",
    "ExecutionBuildMeta",
    "HostDetectionError",
    "HostPlatformSummary",
    "InvalidPlatformStringError",
    "MissingLibdirWarning",
    "NonTestBinarySummary",
    "PathMapper",
    "Platform",
    "PlatformDescriptor",
    "PlatformSummary",
    "Policy",
    "RawBuildMeta",
    "StructuredLogger",
    "SummaryDecodeError",
    "TargetDirRemapper",
    "TargetPlatformSummary",
    "UnsupportedError",
    "ValidationError",
    "dylib_path_env",
    "dylib_path_envvar",
    "dylib_paths",
    "parse_summary",
    "read_summary",
    "serialize_summary",
    "write_summary",
]
