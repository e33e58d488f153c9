"""Authenticated caller identity (from verified ID token claims, never from the payload)."""

from dataclasses import dataclass
from typing import Any

from journalshare.domain.entities.journal import AccessEntry, normalize_email


@dataclass(frozen=True)
class Principal:
    uid: str
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Principal":
        """Build from Firebase ID token claims (uid in user_id or sub)."""
        email = claims.get("email")
        return cls(
            uid=claims.get("user_id") or claims["sub"],
            email=normalize_email(email) if email else None,
            email_verified=bool(claims.get("email_verified", False)),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
        )

    def access_entry(self, role: str) -> AccessEntry:
        """Access map entry for this identity with the given role."""
        return AccessEntry(
            role=role,
            email=self.email,
            display_name=self.display_name,
            photo_url=self.photo_url,
        )
