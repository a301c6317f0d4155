import logging

from sqlalchemy import update
from sqlalchemy.orm import Session as DBSession

from app.models.generated_output import OWNER_SESSION, OWNER_USER, GeneratedOutput
from app.utils.metrics import session_migrations_total

logger = logging.getLogger(__name__)


class SessionMigrationService:
    """Reassigns anonymously-owned outputs to the user who just logged in."""

    def __init__(self, db: DBSession):
        self.db = db

    def migrate(self, session_id: str, user_id: str) -> int:
        """
        Atomically claim every output still owned by session_id. Returns the number
        of outputs claimed; repeated calls and empty sessions return 0.

        session_id stays on the row as a correlation tag, ownership moves to user_id.
        Rows already owned by a user are never touched, so two concurrent logins
        sharing one anonymous session cannot both claim the same outputs.
        """
        if not session_id or not user_id:
            return 0
        result = self.db.execute(
            update(GeneratedOutput)
            .where(
                GeneratedOutput.session_id == session_id,
                GeneratedOutput.owner_kind == OWNER_SESSION,
            )
            .values(owner_kind=OWNER_USER, user_id=user_id)
        )
        self.db.flush()
        claimed = result.rowcount or 0
        if claimed:
            session_migrations_total.inc(claimed)
        logger.info(
            "session_migrated",
            extra={"session_id": session_id, "user_id": user_id, "count": claimed},
        )
        return claimed
