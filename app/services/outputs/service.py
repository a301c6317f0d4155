"""
OutputService: persistence of generated outputs (OutputStore) plus the two
pipeline entry points, store_and_return (creation) and get_if_authorized (retrieval).

The anonymous invariant is enforced here, at write time: a session-owned output
never reaches the database with its full text.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models.generated_output import OWNER_SESSION, OWNER_USER, GeneratedOutput
from app.paywall.access import decide_access
from app.paywall.audit import record_full_access
from app.paywall.errors import MissingRequesterIdentityError
from app.paywall.models import (
    AccessResult,
    NewOutput,
    NoOwner,
    OutputRecord,
    OutputResult,
    Requester,
    SessionOwner,
    UserOwner,
)
from app.paywall.truncation import truncate
from app.utils.metrics import (
    access_decisions_total,
    output_full_words,
    outputs_created_total,
    outputs_truncated_total,
)

logger = logging.getLogger(__name__)


class OutputService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def create(self, record: NewOutput) -> GeneratedOutput:
        full_content = record.full_content
        if isinstance(record.owner, SessionOwner) and full_content is not None:
            logger.info(
                "output_full_suppressed",
                extra={"session_id": record.owner.session_id, "output_type": record.output_type},
            )
            full_content = None

        output = GeneratedOutput(
            output_type=record.output_type,
            output_full=full_content,
            output_preview=record.preview_content,
            is_truncated=record.is_truncated,
            owner_kind=record.owner.kind,
            user_id=record.owner.user_id if isinstance(record.owner, UserOwner) else None,
            session_id=record.owner.session_id if isinstance(record.owner, SessionOwner) else None,
            meta=dict(record.metadata),
        )
        self.db.add(output)
        self.db.commit()
        self.db.refresh(output)

        outputs_created_total.labels(output_type=output.output_type, owner_kind=output.owner_kind).inc()
        if output.is_truncated:
            outputs_truncated_total.labels(output_type=output.output_type).inc()
        logger.info(
            "output_created",
            extra={
                "output_id": output.output_id,
                "output_type": output.output_type,
                "owner_kind": output.owner_kind,
                "user_id": output.user_id,
                "session_id": output.session_id,
            },
        )
        return output

    def get_by_id(self, output_id: str) -> GeneratedOutput | None:
        return self.db.query(GeneratedOutput).filter(GeneratedOutput.output_id == output_id).one_or_none()

    def list_by_user(self, user_id: str) -> list[GeneratedOutput]:
        """User-owned outputs, newest first (created_at DESC, output_id DESC on ties)."""
        return (
            self.db.query(GeneratedOutput)
            .filter(GeneratedOutput.owner_kind == OWNER_USER, GeneratedOutput.user_id == user_id)
            .order_by(GeneratedOutput.created_at.desc(), GeneratedOutput.output_id.desc())
            .all()
        )

    def get_latest_by_user(self, user_id: str) -> GeneratedOutput | None:
        return (
            self.db.query(GeneratedOutput)
            .filter(GeneratedOutput.owner_kind == OWNER_USER, GeneratedOutput.user_id == user_id)
            .order_by(GeneratedOutput.created_at.desc(), GeneratedOutput.output_id.desc())
            .first()
        )

    def list_by_session(self, session_id: str) -> list[GeneratedOutput]:
        """Everything created under session_id, including outputs already migrated to a user."""
        return (
            self.db.query(GeneratedOutput)
            .filter(GeneratedOutput.session_id == session_id)
            .order_by(GeneratedOutput.created_at.desc(), GeneratedOutput.output_id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Pipeline entry points
    # ------------------------------------------------------------------

    def store_and_return(
        self,
        full_text: str,
        output_type: str,
        requester: Requester,
        override: bool = False,
        metadata: dict[str, Any] | None = None,
    ) -> OutputResult:
        """
        Truncate, persist both variants under the requester's identity and return
        what the requester is allowed to see right now.
        """
        truncation = truncate(full_text)
        output = self.create(
            NewOutput(
                output_type=output_type,
                full_content=full_text,
                preview_content=truncation.preview_text,
                is_truncated=truncation.is_truncated,
                owner=_owner_for(requester, override),
                metadata=metadata or {},
            )
        )
        output_full_words.observe(truncation.full_word_count)

        decision = self._decide(output, requester, override)
        gets_full = decision.authorized and decision.content == full_text
        return OutputResult(
            output_id=output.output_id,
            content=decision.content or "",
            is_truncated=truncation.is_truncated and not gets_full,
            full_word_count=truncation.full_word_count,
            preview_word_count=truncation.full_word_count if gets_full else truncation.preview_word_count,
            is_anonymous=output.owner_kind == OWNER_SESSION,
            override_applied=override,
        )

    def get_if_authorized(
        self,
        output_id: str,
        requester: Requester,
        override: bool = False,
    ) -> AccessResult | None:
        """None for an unknown id and for an ownership denial alike."""
        output = self.get_by_id(output_id)
        if output is None:
            access_decisions_total.labels(outcome="not_found").inc()
            return None
        decision = self._decide(output, requester, override)
        if decision.denied:
            return None
        return decision

    def _decide(self, output: GeneratedOutput, requester: Requester, override: bool) -> AccessResult:
        decision = decide_access(OutputRecord.from_model(output), requester, override)

        if decision.denied:
            outcome = "denied"
            logger.warning(
                "output_access_denied",
                extra={"output_id": output.output_id, "user_id": requester.user_id, "session_id": requester.session_id},
            )
        elif override:
            outcome = "override"
            record_full_access(
                output.output_id,
                "override",
                user_id=requester.user_id,
                session_id=requester.session_id,
                output_type=output.output_type,
            )
        elif decision.authorized:
            outcome = "full"
            record_full_access(output.output_id, "pro_owner", user_id=requester.user_id, output_type=output.output_type)
        else:
            outcome = "preview"
        access_decisions_total.labels(outcome=outcome).inc()
        return decision


def _owner_for(requester: Requester, override: bool) -> UserOwner | SessionOwner | NoOwner:
    if override:
        return NoOwner()
    if requester.user_id is not None:
        return UserOwner(user_id=requester.user_id)
    if requester.session_id is not None:
        return SessionOwner(session_id=requester.session_id)
    raise MissingRequesterIdentityError("Output needs a user, a session or an override to be stored")
