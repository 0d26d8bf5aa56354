"""Platform identifiers and the host/target platform pair of a build."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from platform import libc_ver, machine
from typing import Self

from buildmeta.errors import HostDetectionError, InvalidPlatformStringError, UnsupportedError
from buildmeta.summary import (
    BuildMetaSummary,
    BuildPlatformsSummary,
    HostPlatformSummary,
    PlatformSummary,
    TargetFeatures,
    TargetPlatformSummary,
)

# Architecture families; the suffix carries the version/feature letters
# (armv7, thumbv8m.main, riscv32imac, wasm32v1, mips64el, ...).
_ARCH_RE = re.compile(
    r"(x86_64|i[3-6]86|aarch64|arm64|arm|thumb|riscv|mips|powerpc|s390x|sparc|wasm"
    r"|loongarch|nvptx|bpf|avr|msp430|hexagon|m68k|csky|xtensa|amdgcn)[a-z0-9_.]*"
)
_COMPONENT_RE = re.compile(r"[A-Za-z0-9_.]+")
# Three-component triples usually read arch-vendor-os, except when the second
# component is one of these operating systems (aarch64-linux-android, thumbv7em-none-eabihf).
_OS_FIRST = frozenset({"linux", "none", "wasi", "wasip1", "wasip2", "cuda", "uefi", "elf"})

_HOST_ARCHES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "i386": "i686",
    "i486": "i686",
    "i586": "i586",
    "i686": "i686",
    "x86": "i686",
    "armv7l": "armv7",
    "armv7": "armv7",
    "armv6l": "arm",
    "armv5tel": "armv5te",
    "riscv64": "riscv64gc",
    "riscv32": "riscv32gc",
    "ppc": "powerpc",
    "ppc64": "powerpc64",
    "ppc64le": "powerpc64le",
    "mips": "mips",
    "mipsel": "mipsel",
    "mips64": "mips64",
    "mips64el": "mips64el",
    "s390x": "s390x",
    "sparc64": "sparc64",
    "loongarch64": "loongarch64",
}
# ABI suffix appended to the Linux libc environment (gnueabihf, muslabi64, ...).
_LINUX_ABI = {
    "armv7": "eabihf",
    "arm": "eabihf",
    "armv5te": "eabi",
    "mips64": "abi64",
    "mips64el": "abi64",
}


@dataclass(frozen=True, slots=True)
class Platform:
    """A validated target triple plus the target features it was built with."""

    triple: str
    arch: str
    vendor: str
    os: str
    env: str | None = None
    target_features: TargetFeatures = "unknown"
    flags: tuple[str, ...] = ()

    @classmethod
    def parse(
        cls,
        triple: str,
        *,
        target_features: TargetFeatures = "unknown",
        flags: tuple[str, ...] = (),
    ) -> Self:
        """Parse ``arch-[vendor-]os[-env]`` into a platform.

        Only the shape is validated: 2 to 4 non-empty components and an
        architecture from a known family. Vendor, OS and environment are split
        out on a best-effort basis, so new targets parse without changes here.
        Raises :class:`InvalidPlatformStringError` for malformed triples.
        """
        parts = _split_triple(triple)
        if not _ARCH_RE.fullmatch(parts[0]):
            raise _invalid_triple(triple, f"unknown architecture `{parts[0]}`")
        return cls._from_parts(triple, parts, target_features=target_features, flags=flags)

    @classmethod
    def current(cls) -> Self:
        """Detect the platform this interpreter is running on.

        Unmapped machines and operating systems fall back to triples derived from
        ``platform.machine()`` and ``sys.platform``.
        """
        host_machine = machine().lower()
        arch = _HOST_ARCHES.get(host_machine, re.sub(r"[^a-z0-9_.]", "", host_machine))
        if not arch:
            raise HostDetectionError(
                "Unable to detect the host machine.",
                context={"machine": host_machine, "sys_platform": sys.platform},
            )

        if sys.platform.startswith("linux"):
            libc = "gnu" if libc_ver()[0] == "glibc" else "musl"
            suffix = f"unknown-linux-{libc}{_LINUX_ABI.get(arch, '')}"
        elif sys.platform == "darwin":
            suffix = "apple-darwin"
        elif sys.platform in ("win32", "cygwin"):
            suffix = "pc-windows-msvc"
        else:
            os_name = re.sub(r"[^a-z0-9_]", "", sys.platform.lower().rstrip("0123456789"))
            suffix = f"unknown-{os_name or 'unknown'}"
        triple = f"{arch}-{suffix}"
        return cls._from_parts(triple, _split_triple(triple))

    @classmethod
    def _from_parts(
        cls,
        triple: str,
        parts: list[str],
        *,
        target_features: TargetFeatures = "unknown",
        flags: tuple[str, ...] = (),
    ) -> Self:
        arch, rest = parts[0], parts[1:]
        vendor = "unknown"
        if len(rest) == 3 or (len(rest) == 2 and rest[0] not in _OS_FIRST):
            vendor, rest = rest[0], rest[1:]
        return cls(
            triple=triple,
            arch=arch,
            vendor=vendor,
            os=rest[0],
            env=rest[1] if len(rest) == 2 else None,
            target_features=target_features,
            flags=tuple(sorted(set(flags))),
        )

    @classmethod
    def from_summary(cls, summary: PlatformSummary) -> Self:
        return cls.parse(
            summary.triple,
            target_features=summary.target_features,
            flags=summary.flags,
        )

    def to_summary(self) -> PlatformSummary:
        return PlatformSummary(
            triple=self.triple,
            target_features=self.target_features,
            flags=self.flags,
        )


@dataclass(frozen=True, slots=True)
class PlatformDescriptor:
    """A target platform and the rustc library directory detected for it."""

    platform: Platform
    libdir: Path | None = None

    @classmethod
    def from_summary(cls, summary: TargetPlatformSummary) -> Self:
        return cls(platform=Platform.from_summary(summary.platform), libdir=summary.libdir)

    def to_summary(self) -> TargetPlatformSummary:
        return TargetPlatformSummary(platform=self.platform.to_summary(), libdir=self.libdir)


@dataclass(frozen=True, slots=True)
class BuildPlatforms:
    host: Platform
    host_libdir: Path | None = None
    target: PlatformDescriptor | None = None

    @classmethod
    def new(cls, target: PlatformDescriptor | None = None) -> Self:
        return cls(host=Platform.current(), target=target)

    @classmethod
    def from_summary(cls, summary: BuildMetaSummary) -> Self:
        """Resolve build platforms from whichever platform shape the summary carries.

        The structured ``platforms`` object wins, then the first entry of
        ``target_platforms``, then the single ``target_platform`` string. With
        none of them present the host is the current platform and there is no
        target.
        """
        if summary.platforms is not None:
            return cls._from_platforms_summary(summary.platforms)
        # Metadata written by older versions only records the target.
        if summary.target_platforms:
            target = Platform.from_summary(summary.target_platforms[0])
            return cls(host=Platform.current(), target=PlatformDescriptor(platform=target))
        if summary.target_platform is not None:
            target = Platform.parse(summary.target_platform)
            return cls(host=Platform.current(), target=PlatformDescriptor(platform=target))
        return cls(host=Platform.current())

    @classmethod
    def _from_platforms_summary(cls, summary: BuildPlatformsSummary) -> Self:
        if len(summary.targets) > 1:
            raise UnsupportedError(
                "Multiple target platforms are not supported.",
                hint="Build for a single --target when reusing build metadata.",
                context={"targets": ", ".join(t.platform.triple for t in summary.targets)},
            )
        target = None
        if summary.targets:
            target = PlatformDescriptor.from_summary(summary.targets[0])
        return cls(
            host=Platform.from_summary(summary.host.platform),
            host_libdir=summary.host.libdir,
            target=target,
        )

    def to_summary(self) -> BuildPlatformsSummary:
        return BuildPlatformsSummary(
            host=HostPlatformSummary(platform=self.host.to_summary(), libdir=self.host_libdir),
            targets=() if self.target is None else (self.target.to_summary(),),
        )

    def to_target_or_host_summary(self) -> PlatformSummary:
        """Platform summary for the legacy ``target_platforms`` field."""
        if self.target is not None:
            return self.target.platform.to_summary()
        return self.host.to_summary()

    def to_target_triple_str(self) -> str | None:
        """Triple for the legacy ``target_platform`` field."""
        if self.target is None:
            return None
        return self.target.platform.triple


def _invalid_triple(triple: str, reason: str) -> InvalidPlatformStringError:
    return InvalidPlatformStringError(
        f"Invalid platform triple `{triple}`: {reason}.",
        context={"triple": triple},
    )


def _split_triple(triple: str) -> list[str]:
    parts = triple.split("-")
    if not 2 <= len(parts) <= 4 or not all(_COMPONENT_RE.fullmatch(part) for part in parts):
        raise _invalid_triple(triple, "expected 2 to 4 dash-separated components")
    return parts
