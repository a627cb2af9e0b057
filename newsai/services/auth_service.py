"""User accounts, password hashing and JWT issuing."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..core.config import Settings, settings as default_settings
from ..core.database import NewsDatabase, db as default_db
from ..core.errors import (
    InvalidCredentialsError,
    TokenError,
    UserExistsError,
    UserNotFoundError,
)
from ..models.entities import User
from ..models.schemas import LoginResponse, TokenUser, UserResponse

logger = logging.getLogger(__name__)

ROLES = ("admin", "editor", "viewer")
JWT_ALGORITHM = "HS256"


class AuthService:
    def __init__(self, database: Optional[NewsDatabase] = None, settings: Optional[Settings] = None):
        self.database = database or default_db
        self.settings = settings or default_settings

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def check_password(password: str, hashed: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))

    def generate_token(self, user: User) -> str:
        payload = {
            "userId": user.id,
            "username": user.username,
            "role": user.role,
            "exp": datetime.now(timezone.utc) + timedelta(hours=self.settings.JWT_EXPIRES_HOURS),
        }
        return jwt.encode(payload, self.settings.JWT_SECRET, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenUser:
        """Decode ``token``; raises ``TokenError`` when invalid or expired."""
        try:
            payload = jwt.decode(token, self.settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
            return TokenUser(user_id=payload["userId"], username=payload["username"], role=payload["role"])
        except (jwt.PyJWTError, KeyError) as e:
            logger.warning(f"Token verification failed: {e}")
            raise TokenError()

    async def create_user(self, username: str, password: str, role: str = "viewer") -> UserResponse:
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role}")
        username = username.strip().lower()
        hashed = self.hash_password(password)
        try:
            with self.database.session() as session:
                if session.scalar(select(User.id).where(User.username == username)) is not None:
                    raise UserExistsError()
                user = User(username=username, password=hashed, role=role)
                session.add(user)
                session.flush()
                result = UserResponse.model_validate(user)
        except IntegrityError:
            raise UserExistsError()
        logger.info(f"User created successfully: {username} ({role})")
        return result

    async def login(self, username: str, password: str) -> LoginResponse:
        with self.database.session() as session:
            user = session.scalar(select(User).where(User.username == username.strip().lower()))
        if user is None or not self.check_password(password, user.password):
            logger.warning(f"Failed login attempt for {username!r}")
            raise InvalidCredentialsError()

        logger.info(f"User logged in successfully: {user.username}")
        return LoginResponse(token=self.generate_token(user), user=UserResponse.model_validate(user))

    async def get_profile(self, user_id: int) -> UserResponse:
        with self.database.session() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError()
            return UserResponse.model_validate(user)

    async def update_user_role(self, user_id: int, role: str) -> UserResponse:
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role}")
        with self.database.session() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError()
            user.role = role
            session.flush()
            result = UserResponse.model_validate(user)
        logger.info(f"Updated role of user {user_id} to {role}")
        return result


# Global instance
auth_service = AuthService()
