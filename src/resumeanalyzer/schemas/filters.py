from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FilterSpec(BaseModel):
    """Free-text predicates applied to the accumulated profile set.

    ``age`` accepts an exact age (``"27"``) or an inclusive range with either
    side optional (``"25-30"``, ``"30-"``, ``"-40"``).
    """

    job: str = ""
    governorate: str = ""
    age: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)
