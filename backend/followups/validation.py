"""Field level checks whose failures are reported back per field."""
from __future__ import annotations

from datetime import date

from email_validator import EmailNotValidError, validate_email as _check_email

from .errors import ValidationFailed

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72
MAX_NAME_LENGTH = 500
FIRST_CAR_YEAR = 1886


class Validator:
    """Collects the first error reported for each field."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def check(self, ok: bool, field: str, message: str) -> None:
        if not ok:
            self.add_error(field, message)

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise ValidationFailed(self.errors)


def not_blank(value: str | None) -> bool:
    return bool(value and value.strip())


def validate_email(v: Validator, email: str) -> None:
    v.check(not_blank(email), "email", "must be provided")
    if not_blank(email):
        try:
            _check_email(email, check_deliverability=False)
        except EmailNotValidError:
            v.add_error("email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: str) -> None:
    v.check(not_blank(password), "password", "must be provided")
    v.check(
        len((password or "").encode("utf-8")) >= MIN_PASSWORD_LENGTH,
        "password",
        f"must be at least {MIN_PASSWORD_LENGTH} bytes long",
    )
    v.check(
        len((password or "").encode("utf-8")) <= MAX_PASSWORD_LENGTH,
        "password",
        f"must not be more than {MAX_PASSWORD_LENGTH} bytes long",
    )


def validate_registration(v: Validator, name: str, email: str, password: str) -> None:
    v.check(not_blank(name), "name", "must be provided")
    v.check(
        len((name or "").encode("utf-8")) <= MAX_NAME_LENGTH,
        "name",
        f"must not be more than {MAX_NAME_LENGTH} bytes long",
    )
    validate_email(v, email)
    validate_password_plaintext(v, password)


def validate_vehicle(v: Validator, vehicle: dict) -> None:
    """Check the merged vehicle fields (after any partial update)."""

    for field in ("license_plate", "make", "model", "vin", "color", "body_type"):
        v.check(not_blank(vehicle.get(field)), field, f"{field} must not be blank")

    year = vehicle.get("year") or 0
    current_year = date.today().year
    v.check(year >= FIRST_CAR_YEAR, "year", f"year must be at least {FIRST_CAR_YEAR}")
    v.check(
        year <= current_year,
        "year",
        f"year must be less than or equal to {current_year}",
    )
