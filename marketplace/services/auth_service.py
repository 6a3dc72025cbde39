# marketplace/services/auth_service.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.user import UserModel
from marketplace.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from marketplace.repos.user_repo import UserRepo
from marketplace.utils.settings import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_MINUTES
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_token(user: UserModel) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=JWT_EXPIRES_MINUTES)
    to_encode = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Returns {"user_id", "role"}; anything invalid or expired -> UnauthorizedError."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        raise UnauthorizedError("Invalid or expired token")
    return {"user_id": int(sub), "role": payload.get("role")}


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def register(self, email: str, password: str, full_name: str, role: str = "customer") -> Dict[str, Any]:
        if role not in ("customer", "seller"):
            raise ValidationError("Role must be customer or seller")

        if self.repo.get_by_email(email):
            raise ConflictError("Email already registered")

        try:
            user = self.repo.create_user(
                UserModel(
                    email=email.strip().lower(),
                    password_hash=hash_password(password),
                    full_name=full_name.strip(),
                    role=role,
                )
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email already registered")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User {user.id} registered as {role}")
        return {"user": user, "token": create_token(user)}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise UnauthorizedError("Invalid email or password")

        logger.info(f"User {user.id} logged in")
        return {"user": user, "token": create_token(user)}

    def get_profile(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, full_name: str | None = None, password: str | None = None) -> UserModel:
        if full_name is None and password is None:
            raise ValidationError("Nothing to update")

        user = self.get_profile(user_id)
        try:
            if full_name is not None:
                user.full_name = full_name.strip()
            if password is not None:
                user.password_hash = hash_password(password)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User {user_id} updated profile")
        return user
