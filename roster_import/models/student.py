from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple

"""Student identity and import candidate models."""

__all__ = [
    "Identity",
    "ParsedName",
    "ImportCandidate",
    "identity_of",
]


class Identity(NamedTuple):
    """Deduplication key for a person: (LAST NAME upper, first name lower)."""
    last_name_upper: str
    first_name_lower: str


def identity_of(last_name: str, first_name: str) -> Identity:
    """Derive the identity of a person.

    Used for both stored students and freshly parsed rows, so the two sides
    always fold case and whitespace the same way.
    """
    return Identity((last_name or "").strip().upper(), (first_name or "").strip().lower())


@dataclass(frozen=True)
class ParsedName:
    last_name: str
    first_name: str

    @property
    def is_valid(self) -> bool:
        return bool(self.last_name) and bool(self.first_name)

    @property
    def display(self) -> str:
        return f"{self.last_name} {self.first_name}"


@dataclass(frozen=True)
class ImportCandidate:
    """A validated student ready for batch insertion."""
    identity: Identity
    first_name: str
    last_name: str
    birthdate: str | None  # ISO YYYY-MM-DD
    owner_class_id: Any

    def to_record(self) -> dict[str, Any]:
        """Insert payload for the students table."""
        return {
            "class_id": self.owner_class_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "birthdate": self.birthdate,
        }
