"""
Account Service

Registration and password login for staff and customers. Login checks the
password hash only; no session token is issued.
"""

import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.exceptions import ConflictError, UnauthorizedError
from qr_ordering.models import User
from qr_ordering.schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

# pbkdf2_sha256 first; bcrypt hashes are still verified
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

INVALID_CREDENTIALS = "Invalid email or password"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


class AccountService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, data: RegisterRequest) -> User:
        existing = await self.session.scalar(select(User.id).where(User.email == data.email))
        if existing is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            full_name=data.full_name,
            email=data.email,
            password_hash=hash_password(data.password),
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"User #{user.id} registered")
        return user

    async def login(self, data: LoginRequest) -> User:
        user = await self.session.scalar(select(User).where(User.email == data.email))
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("Rejected login attempt")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return user
