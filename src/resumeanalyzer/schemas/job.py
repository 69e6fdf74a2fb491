from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class JobDescription(BaseModel):
    """Free-text job description that candidates are scored against."""

    text: str = ""

    model_config = ConfigDict(extra="forbid")

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()
