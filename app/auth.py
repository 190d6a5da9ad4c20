from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Callable, List, Optional
from app.models.user import User
from app.database import get_db
from app.exceptions import ArchiveError, AuthenticationError, AuthorizationError, InvalidTokenError
from .constants import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, SUBJECT_CLAIM, TOKEN_URL
from .constants.roles import CallerClass, RoleName, classify_role
import logging

logger = logging.getLogger(__name__)

# Bearer token scheme; a missing header is not an error at this level
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=TOKEN_URL, auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    if SUBJECT_CLAIM not in to_encode:
        raise ValueError("Missing 'sub' claim (email) in token data.")

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the email carried in a token's 'sub' claim."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Token expired")
        raise InvalidTokenError("Not authorized, token expired")
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {str(e)}")
        raise InvalidTokenError()

    email: str = payload.get(SUBJECT_CLAIM)
    if email is None:
        logger.warning("Token is missing 'sub' claim")
        raise InvalidTokenError()
    return email


async def get_user_by_token(token: str, db: AsyncSession) -> User:
    email = decode_access_token(token)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user is None:
        logger.warning(f"User with email '{email}' not found.")
        raise InvalidTokenError()
    return user


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    if not token:
        raise AuthenticationError()

    user = await get_user_by_token(token, db)
    if user.blocked:
        raise AuthorizationError("User is blocked")

    return user


def get_current_user_with_role(required_roles: List[str]) -> Callable[..., User]:
    async def _current_user_with_role(
        current_user: User = Depends(get_current_user),
    ) -> User:
        """
        Ensure the current user holds one of the required roles.

        Raises:
            AuthorizationError: If the user's role is not allowed.
        """
        role_name = current_user.role.name if current_user.role else None
        if role_name not in required_roles:
            logger.warning(f"Role '{role_name}' denied; requires one of {required_roles}")
            raise AuthorizationError(required_roles=list(required_roles))

        return current_user

    return _current_user_with_role


moderator_only = get_current_user_with_role([RoleName.MODERATOR.value, RoleName.ADMIN.value])


async def classify_caller(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CallerClass:
    """
    Classify the caller for view counting.

    Anonymous callers are visitors. A presented token that cannot be resolved
    to an active user with a known role classifies as UNKNOWN, which is never
    counted.
    """
    if not token:
        return CallerClass.VISITOR

    try:
        user = await get_user_by_token(token, db)
    except (ArchiveError, SQLAlchemyError) as e:
        logger.debug(f"Caller role unresolved: {e}")
        return CallerClass.UNKNOWN

    if user.blocked or user.role is None:
        return CallerClass.UNKNOWN

    return classify_role(user.role.name)
