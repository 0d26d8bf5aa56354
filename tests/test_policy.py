import pytest

from buildmeta.errors import ValidationError
from buildmeta.policy import Policy


def test_policy_defaults_to_warning_on_missing_libdir() -> None:
    assert Policy().missing_libdir == "warn"


def test_policy_rejects_unknown_missing_libdir_value() -> None:
    with pytest.raises(ValidationError):
        Policy(missing_libdir="error")  # type: ignore[arg-type]
