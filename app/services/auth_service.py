"""Authentication business logic: user records and credentials."""
import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, ConflictError
from app.core.security import create_access_token, dummy_verify, get_password_hash, verify_password
from app.models.user import User
from app.schemas.user import AuthResponse, UserCreate, UserIdentity

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """Register a new user. Raises ConflictError if the email or username is taken."""
    result = await db.execute(
        select(User).where(or_(User.email == data.email, User.username == data.username))
    )
    existing = result.scalars().first()
    if existing is not None:
        raise ConflictError("Email already registered" if existing.email == data.email else "Username already taken")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same email/username.
        await db.rollback()
        raise ConflictError("Email or username already registered") from e
    await db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if user is None:
        dummy_verify()
        logger.info("Login failed: unknown email")
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user %s", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS)
    logger.info("Login success: %s (%s)", user.id, user.username)
    return user


def issue_token(user: User) -> str:
    return create_access_token(user.id)


def user_to_identity(user: User) -> UserIdentity:
    return UserIdentity(id=user.id, username=user.username, email=user.email)


def user_to_auth_response(user: User) -> AuthResponse:
    return AuthResponse(id=user.id, username=user.username, email=user.email, token=issue_token(user))
