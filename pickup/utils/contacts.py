"""Phone number and email normalization."""

import re
from email.utils import parseaddr

_NON_DIGITS = re.compile(r"\D")


def format_phone_number(phone: str) -> str:
    """Format a phone number as E.164, assuming US numbers when no country code is given."""
    cleaned = _NON_DIGITS.sub("", phone)

    if len(cleaned) == 10:
        return f"+1{cleaned}"
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"
    if phone.strip().startswith("+"):
        return f"+{cleaned}"
    return f"+{cleaned}"


def is_valid_phone_number(phone: str) -> bool:
    """Check for a 10-digit US number, optionally with the leading country code."""
    cleaned = _NON_DIGITS.sub("", phone)
    return len(cleaned) == 10 or (len(cleaned) == 11 and cleaned.startswith("1"))


def normalize_phone(phone: str) -> str:
    """Digits-only comparison key for a phone number."""
    cleaned = _NON_DIGITS.sub("", phone)
    if len(cleaned) == 10:
        cleaned = f"1{cleaned}"
    return cleaned


def normalize_email(email: str) -> str:
    """Bare lower-cased address; accepts ``"Jane Doe <jane@example.com>"`` senders."""
    _, address = parseaddr(email)
    return (address or email).strip().lower()


def contact_key(contact: str) -> str:
    """Index key for a contact credential, phone or email."""
    if "@" in contact:
        return normalize_email(contact)
    return normalize_phone(contact)
