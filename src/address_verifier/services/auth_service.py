"""Credential store operations: signup and login.

Login failures never reveal whether the email exists; callers get ``None``
for both an unknown email and a wrong password.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from address_verifier.core.security import hash_password, verify_password
from address_verifier.models.user import User
from address_verifier.schemas.auth import SignupRequest

USER_EXISTS_MESSAGE = "User already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Look up a user by (case-normalized) email."""
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    """Authenticate a user by email and password.

    Args:
        session: The database session.
        email: The email to authenticate.
        password: The plaintext password.

    Returns:
        The User if authentication succeeds, None otherwise.
    """
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def create_user(session: AsyncSession, request: SignupRequest, *, hash_rounds: int) -> User:
    """Create a new user.

    The lookup gives the friendly error in the common case; the unique index
    on ``users.email`` settles concurrent signups for the same address.

    Args:
        session: The database session.
        request: Validated signup form.
        hash_rounds: bcrypt cost factor.

    Returns:
        The created User.

    Raises:
        ValueError: If the email already exists.
    """
    if await get_user_by_email(session, request.email) is not None:
        raise ValueError(USER_EXISTS_MESSAGE)

    user = User(
        name=request.name,
        email=request.email,
        hashed_password=hash_password(request.password, rounds=hash_rounds),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ValueError(USER_EXISTS_MESSAGE) from e
    await session.refresh(user)
    return user
