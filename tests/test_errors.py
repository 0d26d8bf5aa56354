from buildmeta.errors import (
    BuildMetaError,
    ErrorCode,
    HostDetectionError,
    InvalidPlatformStringError,
    SummaryDecodeError,
    UnsupportedError,
    ValidationError,
)


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        UnsupportedError("two targets"),
        InvalidPlatformStringError("bad triple"),
        SummaryDecodeError("bad json"),
        HostDetectionError("unknown host"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.UNSUPPORTED.value,
        ErrorCode.PLATFORM.value,
        ErrorCode.SUMMARY.value,
        ErrorCode.HOST.value,
    ]
    assert all(isinstance(error, BuildMetaError) for error in errors)


def test_error_str_includes_hint_and_context() -> None:
    error = UnsupportedError(
        "Multiple target platforms are not supported.",
        hint="Build for a single --target.",
        context={"targets": "a, b", "empty": ""},
    )
    rendered = str(error)

    assert "Multiple target platforms" in rendered
    assert "Hint: Build for a single --target." in rendered
    assert "targets: a, b" in rendered
    assert "empty" not in rendered


def test_error_to_dict() -> None:
    payload = SummaryDecodeError("Invalid JSON.", context={"path": "meta.json"}).to_dict()

    assert payload["code"] == "E_SUMMARY"
    assert payload["context"] == {"path": "meta.json"}
    assert "hint" not in payload
