"""
Request-scoped dependencies: current user, requester identity, override flag.
Identity comes from the signed session cookie (SessionMiddleware); the anonymous
session id is minted on first use and survives login so migration can find it.
"""
from uuid import uuid4

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.user import User
from app.paywall.models import Requester
from app.paywall.override import resolve_override
from app.services.users.service import UserService

SESSION_USER_KEY = "user_id"
SESSION_ANON_KEY = "anon_session_id"


def get_anon_session_id(request: Request) -> str:
    anon_id = request.session.get(SESSION_ANON_KEY)
    if not anon_id:
        anon_id = str(uuid4())
        request.session[SESSION_ANON_KEY] = anon_id
    return anon_id


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = UserService(db).get(user_id)
    if user is None:
        # stale cookie for a deleted user
        request.session.pop(SESSION_USER_KEY, None)
    return user


def get_requester(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> Requester:
    return Requester(
        user_id=user.id if user else None,
        session_id=get_anon_session_id(request),
        is_pro=bool(user.is_pro) if user else False,
    )


def get_override() -> bool:
    """Resolved once per request, outside the paywall core."""
    return resolve_override(settings.app_env, settings.paywall_operator_override)
