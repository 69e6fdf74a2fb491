"""Pure query over a profile set snapshot."""

from __future__ import annotations

import re
from typing import Iterable

from ..schemas import CandidateProfile, FilterSpec

_LEADING_INT_RE = re.compile(r"^\s*\+?(\d+)")


def _parse_int(text: str) -> int | None:
    """Parse a leading integer prefix (``"25 yrs"`` -> 25); None if there is none."""
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else None


def _contains(value: str | None, needle: str) -> bool:
    if not needle:
        return True
    return bool(value) and needle.lower() in value.lower()


def age_matches(age: int | None, age_filter: str) -> bool:
    age_filter = (age_filter or "").strip()
    if not age_filter:
        return True
    if age is None:
        return False

    if "-" in age_filter:
        parts = age_filter.split("-")
        min_age = _parse_int(parts[0])
        max_age = _parse_int(parts[1])
        if min_age is not None and age < min_age:
            return False
        if max_age is not None and age > max_age:
            return False
        return True

    exact = _parse_int(age_filter)
    return exact is None or age == exact


def matches(profile: CandidateProfile, spec: FilterSpec) -> bool:
    return (
        _contains(profile.applied_for, spec.job)
        and _contains(profile.governorate, spec.governorate)
        and age_matches(profile.age, spec.age)
    )


def filter_profiles(profiles: Iterable[CandidateProfile], spec: FilterSpec | None = None) -> list[CandidateProfile]:
    """Return the profiles passing every predicate, in their original order."""
    spec = spec or FilterSpec()
    return [profile for profile in profiles if matches(profile, spec)]


__all__ = ["age_matches", "filter_profiles", "matches"]
