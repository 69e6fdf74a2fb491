"""Ordered, owned collection of extracted candidate profiles."""

from __future__ import annotations

from typing import Iterator

from ..schemas import CandidateProfile

UNSCORED_SORT_VALUE = -1


def score_sort_key(profile: CandidateProfile) -> int:
    return profile.match_score if profile.match_score is not None else UNSCORED_SORT_VALUE


class ProfileSet:
    """Profiles in insertion order until a match pass re-sorts them.

    :meth:`upsert_and_resort` is the only way scores change, and it always
    leaves the set sorted by descending score (unscored last, ties stable).
    """

    def __init__(self, profiles: list[CandidateProfile] | None = None) -> None:
        self._profiles: list[CandidateProfile] = list(profiles or [])

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[CandidateProfile]:
        return iter(self.snapshot())

    def __bool__(self) -> bool:
        return bool(self._profiles)

    def snapshot(self) -> tuple[CandidateProfile, ...]:
        return tuple(self._profiles)

    def ids(self) -> list[str]:
        return [profile.id for profile in self._profiles]

    def get(self, profile_id: str) -> CandidateProfile | None:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None

    def append(self, profile: CandidateProfile) -> None:
        if self.get(profile.id) is not None:
            raise ValueError(f"Duplicate profile id: {profile.id!r}")
        self._profiles.append(profile)

    def upsert_and_resort(self, profile_id: str, score: int | float) -> CandidateProfile:
        """Overwrite one profile's score, then re-sort the whole set."""
        profile = self.get(profile_id)
        if profile is None:
            raise KeyError(f"Unknown profile id: {profile_id!r}")
        profile.match_score = score
        self._profiles.sort(key=score_sort_key, reverse=True)
        return profile

    def clear(self) -> None:
        """Drop every profile and release the source documents they own."""
        for profile in self._profiles:
            profile.release_source()
        self._profiles.clear()


__all__ = ["ProfileSet", "UNSCORED_SORT_VALUE", "score_sort_key"]
