"""
User authentication routes (session cookie).
Login claims the outputs created under the caller's anonymous session.
"""
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import SESSION_ANON_KEY, SESSION_USER_KEY, get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.users import LoginIn, LoginOut, RegisterIn, UserOut
from app.services.auth.passwords import hash_password, verify_password
from app.services.sessions.service import SessionMigrationService
from app.services.users.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, username=user.username, email=user.email, is_pro=bool(user.is_pro))


def _start_session(request: Request, db: Session, user: User) -> int:
    """Put the user into the cookie and migrate the anonymous outputs; returns migrated count."""
    request.session[SESSION_USER_KEY] = user.id
    anon_id = request.session.get(SESSION_ANON_KEY)
    if not anon_id:
        return 0
    migrated = SessionMigrationService(db).migrate(anon_id, user.id)
    db.commit()
    return migrated


@router.post("/register", response_model=LoginOut, status_code=status.HTTP_201_CREATED)
def register(request: Request, body: RegisterIn = Body(...), db: Session = Depends(get_db)) -> LoginOut:
    users = UserService(db)
    if users.get_by_username(body.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
    try:
        user = users.create_user(body.username, hash_password(body.password), email=body.email)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
    migrated = _start_session(request, db, user)
    logger.info("user_registered", extra={"user_id": user.id, "count": migrated})
    return LoginOut(user=_user_out(user), migrated_outputs=migrated)


@router.post("/login", response_model=LoginOut)
def login(request: Request, body: LoginIn = Body(...), db: Session = Depends(get_db)) -> LoginOut:
    user = UserService(db).get_by_username(body.username)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )
    migrated = _start_session(request, db, user)
    logger.info("user_logged_in", extra={"user_id": user.id, "count": migrated})
    return LoginOut(user=_user_out(user), migrated_outputs=migrated)


@router.post("/logout")
def logout(request: Request) -> dict:
    """Drops the user; the anonymous session id stays so earlier previews remain reachable."""
    request.session.pop(SESSION_USER_KEY, None)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserOut)
def get_me(user: User | None = Depends(get_current_user)) -> UserOut:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "not_authenticated", "message": "Not authenticated"},
        )
    return _user_out(user)
