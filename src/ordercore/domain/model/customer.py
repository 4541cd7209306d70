"""The slice of a user account the order engine needs."""

from __future__ import annotations

from dataclasses import dataclass

from ordercore.domain.exceptions import ValidationError


def normalize_email(email: str) -> str:
    return email.strip().lower()


def require_email(email: str | None) -> str:
    """Return ``email`` trimmed, or raise if it cannot be an address."""
    candidate = (email or "").strip()
    local, _, domain = candidate.partition("@")
    if not local or "." not in domain or " " in candidate:
        raise ValidationError("Valid email is required")
    return candidate


@dataclass(frozen=True)
class Customer:
    id: int
    email: str

    def owns_email(self, email: str) -> bool:
        return normalize_email(self.email) == normalize_email(email)
