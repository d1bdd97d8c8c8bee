"""Field level validation."""
import pytest

from followups.errors import ValidationFailed
from followups.validation import (
    Validator,
    validate_password_plaintext,
    validate_registration,
    validate_vehicle,
)


def password_errors(password: str) -> dict:
    v = Validator()
    validate_password_plaintext(v, password)
    return v.errors


def test_password_bounds_are_counted_in_bytes() -> None:
    # Three characters, nine bytes in UTF-8.
    assert password_errors("€€€") == {}
    assert password_errors("€€") == {
        "password": "must be at least 8 bytes long"
    }
    assert password_errors("€" * 24) == {}
    assert password_errors("€" * 25) == {
        "password": "must not be more than 72 bytes long"
    }


def test_blank_password_reports_first_error_only() -> None:
    assert password_errors("") == {"password": "must be provided"}


def test_registration_collects_every_field() -> None:
    v = Validator()
    validate_registration(v, "", "nope", "short")

    assert set(v.errors) == {"name", "email", "password"}
    with pytest.raises(ValidationFailed) as exc:
        v.raise_if_invalid()
    assert exc.value.errors == v.errors


def test_vehicle_year_must_be_plausible() -> None:
    v = Validator()
    validate_vehicle(
        v,
        {
            "license_plate": "KA-01-1234",
            "make": "Benz",
            "model": "Patent-Motorwagen",
            "year": 1885,
            "vin": "X",
            "color": "black",
            "body_type": "tricycle",
        },
    )
    assert v.errors == {"year": "year must be at least 1886"}
