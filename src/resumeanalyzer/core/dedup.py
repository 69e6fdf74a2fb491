"""Identity tracking across extracted profiles."""

from __future__ import annotations

from typing import NamedTuple

from ..schemas import CandidateProfile


class IdentityKey(NamedTuple):
    """Normalised (name, email) pair identifying a candidate.

    Missing fields normalise to ``""``, so every profile lacking both name and
    email shares the key ``("", "")`` and only the first one is kept.
    """

    name: str
    email: str

    @classmethod
    def of(cls, profile: CandidateProfile) -> "IdentityKey":
        return cls((profile.name or "").lower(), (profile.email or "").lower())

    def __str__(self) -> str:
        return f"{self.name}|{self.email}"


class Deduplicator:
    """Set of identity keys seen during one ingestion run."""

    def __init__(self) -> None:
        self._seen: set[IdentityKey] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, profile: object) -> bool:
        return isinstance(profile, CandidateProfile) and IdentityKey.of(profile) in self._seen

    def is_new(self, profile: CandidateProfile) -> bool:
        """Record the profile's identity, returning False if it was already seen."""
        key = IdentityKey.of(profile)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def reset(self) -> None:
        self._seen.clear()


__all__ = ["Deduplicator", "IdentityKey"]
