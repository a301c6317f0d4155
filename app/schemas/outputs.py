from typing import Any

from pydantic import BaseModel, Field


class OutputCreateIn(BaseModel):
    full_text: str
    output_type: str = Field(..., min_length=1, max_length=64)
    metadata: dict[str, Any] = Field(default_factory=dict)


class OutputCreateOut(BaseModel):
    output_id: str
    content: str
    is_truncated: bool
    full_word_count: int
    preview_word_count: int
    is_anonymous: bool
    override_applied: bool


class OutputOut(BaseModel):
    output_id: str
    content: str
    authorized: bool
    output_type: str
