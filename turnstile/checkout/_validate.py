"""
Form validation and phone normalisation.
"""

from __future__ import annotations

import re

from turnstile.checkout._types import CheckoutFailure, CheckoutForm, FailureKind

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NON_DIGIT = re.compile(r"\D")


def normalize_phone(phone: str) -> str:
    """
    Best-effort Kenyan mobile normalisation to 254XXXXXXXXX.

        "0712345678"   → "254712345678"
        "254712345678" → "254712345678"
        "712345678"    → "254712345678"

    Anything else comes back as its digits, unchanged otherwise.
    """
    digits = _NON_DIGIT.sub("", phone)
    if digits.startswith("0") and len(digits) == 10:
        return "254" + digits[1:]
    if digits.startswith("254") and len(digits) == 12:
        return digits
    if len(digits) == 9:
        return "254" + digits
    return digits


def validate_form(form: CheckoutForm) -> CheckoutFailure | None:
    """None when the form may be submitted."""
    errors: list[tuple[str, str]] = []

    if len(form.name.strip()) < 2:
        errors.append(("name", "Name must be at least 2 characters."))
    if not _EMAIL.match(form.email.strip()):
        errors.append(("email", "Please enter a valid email address."))

    digits = _NON_DIGIT.sub("", form.phone)
    if len(digits) < 10:
        errors.append(("phone", "Please enter a valid 10-digit phone number."))
    elif len(digits) > 15:
        errors.append(("phone", "Phone number is too long."))

    if not form.terms_accepted:
        errors.append(("terms_accepted", "You must accept the terms and conditions to proceed."))

    if not errors:
        return None
    return CheckoutFailure(FailureKind.VALIDATION, errors[0][1], fields=tuple(errors))


__all__ = ("normalize_phone", "validate_form")
