"""
Paywall DTOs: owner variants, Requester (input of decide_access), OutputRecord,
AccessResult, TruncationResult, OutputResult.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


# ----- Ownership: exactly one of user / session / none -----


class UserOwner(BaseModel):
    kind: Literal["user"] = "user"
    user_id: str

    model_config = {"frozen": True}


class SessionOwner(BaseModel):
    """Anonymous, pre-login owner. Never eligible for full content."""

    kind: Literal["session"] = "session"
    session_id: str

    model_config = {"frozen": True}


class NoOwner(BaseModel):
    """Override-created output, ownership tracking intentionally skipped."""

    kind: Literal["none"] = "none"

    model_config = {"frozen": True}


Owner = Annotated[Union[UserOwner, SessionOwner, NoOwner], Field(discriminator="kind")]


# ----- Requester identity (resolved by the caller, never sniffed by the core) -----


class Requester(BaseModel):
    """
    Who is asking. user_id set = authenticated; only session_id = anonymous visitor;
    neither = anonymous without a session (only valid together with override).
    is_pro is read from the user row at request time.
    """

    user_id: str | None = None
    session_id: str | None = None
    is_pro: bool = False

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


# ----- Stored output as seen by the pure decision -----


class OutputRecord(BaseModel):
    output_id: str
    output_type: str
    full_content: str | None = None
    preview_content: str
    is_truncated: bool = False
    owner: Owner

    model_config = {"frozen": True}

    @classmethod
    def from_model(cls, row: Any) -> "OutputRecord":
        """Build from a GeneratedOutput row; owner_kind selects the variant."""
        owner: UserOwner | SessionOwner | NoOwner
        if row.owner_kind == "user":
            owner = UserOwner(user_id=row.user_id)
        elif row.owner_kind == "session":
            owner = SessionOwner(session_id=row.session_id)
        elif row.owner_kind == "none":
            owner = NoOwner()
        else:
            raise ValueError(f"Unknown owner_kind: {row.owner_kind!r}")
        return cls(
            output_id=row.output_id,
            output_type=row.output_type,
            full_content=row.output_full,
            preview_content=row.output_preview,
            is_truncated=row.is_truncated,
            owner=owner,
        )


# ----- decide_access result -----


class AccessResult(BaseModel):
    """
    content is None only when denied (ownership violation). The retrieval API maps
    denied to "not found".
    """

    content: str | None = None
    authorized: bool = False
    output_type: str
    denied: bool = False

    model_config = {"frozen": True}


# ----- TruncationEngine result -----


class TruncationResult(BaseModel):
    preview_text: str
    is_truncated: bool
    preview_word_count: int = Field(..., description="Body words, banner excluded")
    full_word_count: int

    model_config = {"frozen": True}


# ----- store_and_return result (what the generation pipeline hands back) -----


class NewOutput(BaseModel):
    """Input of OutputService.create."""

    output_type: str
    full_content: str | None = None
    preview_content: str
    is_truncated: bool = False
    owner: Owner
    metadata: dict[str, Any] = Field(default_factory=dict)


class OutputResult(BaseModel):
    output_id: str
    content: str
    is_truncated: bool
    full_word_count: int
    preview_word_count: int
    is_anonymous: bool
    override_applied: bool

    model_config = {"frozen": True}
