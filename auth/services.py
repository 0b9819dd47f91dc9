# auth/services.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Optional
from auth.models import User
from auth.schemas import UserCreate
from config import settings
from errors import Conflict, Forbidden, Unauthorized

logger = logging.getLogger(__name__)

class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token for a user id."""
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode = {"sub": user_id, "exp": expire}
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Optional[str]:
        """Return the user id carried by a valid token, None otherwise."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None
        return payload.get("sub")

    @staticmethod
    def get_user_by_email(email: str, db: Session) -> Optional[User]:
        """Retrieve a user by email."""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = AuthService.get_user_by_email(email, db)
        if not user or not AuthService.verify_password(password, user.password_hash):
            raise Unauthorized("Incorrect email or password")
        if user.is_blocked:
            raise Forbidden("Your account has been blocked")
        user.last_login = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_user(user_data: UserCreate, db: Session, role: str = "user") -> User:
        email = user_data.email.lower()
        if db.query(User).filter(User.email == email).first():
            raise Conflict("Email already registered")
        if db.query(User).filter(User.username == user_data.username).first():
            raise Conflict("Username already taken")

        new_user = User(
            username=user_data.username,
            email=email,
            password_hash=AuthService.hash_password(user_data.password),
            role=role,
        )
        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Email or username already taken")
        db.refresh(new_user)
        logger.info(f"Registered user {new_user.id} ({new_user.username})")
        return new_user
