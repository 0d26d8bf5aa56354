import sys
from pathlib import Path

import pytest

from buildmeta.errors import ErrorCode, InvalidPlatformStringError
from buildmeta.platform import BuildPlatforms, Platform, PlatformDescriptor
from buildmeta.summary import PlatformSummary, TargetPlatformSummary


@pytest.mark.parametrize(
    ("triple", "arch", "vendor", "os", "env"),
    [
        ("x86_64-unknown-linux-gnu", "x86_64", "unknown", "linux", "gnu"),
        ("x86_64-pc-windows-msvc", "x86_64", "pc", "windows", "msvc"),
        ("aarch64-apple-darwin", "aarch64", "apple", "darwin", None),
        ("aarch64-linux-android", "aarch64", "unknown", "linux", "android"),
        ("wasm32-unknown-unknown", "wasm32", "unknown", "unknown", None),
        ("wasm32-wasip1", "wasm32", "unknown", "wasip1", None),
        ("thumbv7em-none-eabihf", "thumbv7em", "unknown", "none", "eabihf"),
        ("riscv64gc-unknown-linux-musl", "riscv64gc", "unknown", "linux", "musl"),
    ],
)
def test_platform_parse_splits_triple_components(
    triple: str, arch: str, vendor: str, os: str, env: str | None
) -> None:
    platform = Platform.parse(triple)
    assert platform.triple == triple
    assert platform.arch == arch
    assert platform.vendor == vendor
    assert platform.os == os
    assert platform.env == env
    assert platform.target_features == "unknown"


@pytest.mark.parametrize(
    "triple",
    [
        "invalid-platform-triple",
        "x86_64",
        "",
        "x86_64--linux",
        "x86_64-unknown/linux",
        "x86_64-unknown-linux-gnu-extra",
    ],
)
def test_platform_parse_rejects_malformed_triples(triple: str) -> None:
    with pytest.raises(InvalidPlatformStringError) as excinfo:
        Platform.parse(triple)

    assert excinfo.value.code == ErrorCode.PLATFORM.value
    assert excinfo.value.context["triple"] == triple


def test_platform_current_is_a_parseable_triple(host_platform: Platform) -> None:
    assert Platform.parse(host_platform.triple) == host_platform


def test_platform_summary_keeps_features_and_flags() -> None:
    summary = PlatformSummary(
        triple="x86_64-unknown-linux-gnu",
        target_features=("sse2", "fxsr"),
        flags=("cargo_web",),
    )
    platform = Platform.from_summary(summary)

    assert platform.target_features == ("sse2", "fxsr")
    assert platform.flags == ("cargo_web",)
    assert platform.to_summary() == summary


def test_platform_descriptor_summary_carries_libdir() -> None:
    summary = TargetPlatformSummary(
        platform=PlatformSummary(triple="aarch64-unknown-linux-gnu"),
        libdir=Path("/fake/libdir"),
    )
    descriptor = PlatformDescriptor.from_summary(summary)

    assert descriptor.platform.arch == "aarch64"
    assert descriptor.libdir == Path("/fake/libdir")
    assert descriptor.to_summary() == summary


def test_build_platforms_new_uses_current_host(host_platform: Platform) -> None:
    platforms = BuildPlatforms.new()
    assert platforms.host == host_platform
    assert platforms.host_libdir is None
    assert platforms.target is None


def test_build_platforms_legacy_fields_fall_back_to_host(host_platform: Platform) -> None:
    platforms = BuildPlatforms(host=host_platform)
    assert platforms.to_target_triple_str() is None
    assert platforms.to_target_or_host_summary() == host_platform.to_summary()

    target = PlatformDescriptor(platform=Platform.parse("aarch64-unknown-linux-gnu"))
    with_target = BuildPlatforms(host=host_platform, target=target)
    assert with_target.to_target_triple_str() == "aarch64-unknown-linux-gnu"
    assert with_target.to_target_or_host_summary() == target.platform.to_summary()


@pytest.mark.parametrize(
    ("triple", "arch", "vendor", "os", "env"),
    [
        ("xtensa-esp32-espidf", "xtensa", "esp32", "espidf", None),
        ("armv6k-nintendo-3ds", "armv6k", "nintendo", "3ds", None),
        ("wasm32v1-none", "wasm32v1", "unknown", "none", None),
        ("aarch64-nintendo-switch-freestanding", "aarch64", "nintendo", "switch", "freestanding"),
        ("x86_64-lynx-lynxos178", "x86_64", "lynx", "lynxos178", None),
        ("riscv32imac-unknown-none-elf", "riscv32imac", "unknown", "none", "elf"),
        ("thumbv8m.main-none-eabihf", "thumbv8m.main", "unknown", "none", "eabihf"),
        ("x86_64-unknown-plan9", "x86_64", "unknown", "plan9", None),
    ],
)
def test_platform_parse_accepts_tier_2_and_3_triples(
    triple: str, arch: str, vendor: str, os: str, env: str | None
) -> None:
    platform = Platform.parse(triple)
    assert (platform.arch, platform.vendor, platform.os, platform.env) == (arch, vendor, os, env)


@pytest.mark.parametrize(
    ("host_machine", "expected"),
    [
        ("armv7l", "armv7-unknown-linux-gnueabihf"),
        ("armv6l", "arm-unknown-linux-gnueabihf"),
        ("ppc64", "powerpc64-unknown-linux-gnu"),
        ("mips", "mips-unknown-linux-gnu"),
        ("mips64", "mips64-unknown-linux-gnuabi64"),
        ("riscv32", "riscv32gc-unknown-linux-gnu"),
        ("alpha", "alpha-unknown-linux-gnu"),
    ],
)
def test_platform_current_maps_linux_machines(
    monkeypatch: pytest.MonkeyPatch, host_machine: str, expected: str
) -> None:
    monkeypatch.setattr("buildmeta.platform.machine", lambda: host_machine)
    monkeypatch.setattr("buildmeta.platform.libc_ver", lambda: ("glibc", "2.36"))
    monkeypatch.setattr(sys, "platform", "linux")

    assert Platform.current().triple == expected


def test_platform_current_falls_back_for_unknown_operating_systems(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("buildmeta.platform.machine", lambda: "x86_64")
    monkeypatch.setattr(sys, "platform", "sunos5")

    platform = Platform.current()
    assert platform.triple == "x86_64-unknown-sunos"
    assert platform.os == "sunos"
