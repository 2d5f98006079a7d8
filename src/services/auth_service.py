"""
Authentication service for user accounts and JWT token management.
"""
import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional
from src.core import config
from src.core.cache import OwnerScopedCache
from src.core.exceptions import InvalidCredentialsException, UserNotFoundException
from src.core.logger import get_logger
from src.models.dto.auth_dto import ProfileResponse, RegisterRequest, UpdateProfileRequest
from src.models.user_model import User
from src.repositories.db_repository import DrugRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.repositories.user_repository import UserRepository

logger = get_logger(__name__)


def create_access_token(username: str) -> str:
    """
    Generate a JWT access token for authenticated user.

    Args:
        username: The username to encode in the token

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.now(timezone.utc)
    expiration = issued_at + timedelta(hours=config.settings.jwt_expiration_hours)

    payload = {
        "sub": username,
        "exp": expiration,
        "iat": issued_at
    }

    return jwt.encode(payload, config.settings.jwt_secret, algorithm=config.settings.jwt_algorithm)


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


class AuthService:
    """Service for account registration, login and profile management."""

    def __init__(
        self,
        user_repository: UserRepository = None,
        drug_repository: DrugRepository = None,
        cache: Optional[OwnerScopedCache] = None
    ):
        self.user_repository = user_repository or UserRepository()
        self.drug_repository = drug_repository or DynamoRepository()
        self.cache = cache

    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate user by verifying credentials.

        Returns:
            User if authentication successful, None otherwise
        """
        user = self.user_repository.get_by_username(username)

        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", username)
            return None

        return user

    def register_user(self, request: RegisterRequest) -> ProfileResponse:
        """
        Create a new account.

        Raises:
            UserAlreadyExistsException: If the username is taken
        """
        user = User(
            username=request.username,
            email=request.email,
            password_hash=hash_password(request.password)
        )
        self.user_repository.create(user)
        logger.info("Registered user %s", user.username)
        return self._to_profile(user)

    def get_profile(self, username: str) -> ProfileResponse:
        return self._to_profile(self._get_user(username))

    def update_profile(self, username: str, request: UpdateProfileRequest) -> ProfileResponse:
        user = self._get_user(username)

        updates = {}
        if request.email is not None:
            updates['email'] = request.email
            user.email = request.email
        if request.alerts_enabled is not None:
            updates['alerts_enabled'] = request.alerts_enabled
            user.alerts_enabled = request.alerts_enabled

        if updates:
            self.user_repository.update(username, updates)
            logger.info("Updated profile of %s: %s", username, sorted(updates))

        return self._to_profile(user)

    def delete_account(self, username: str, password: str) -> int:
        """
        Delete an account together with every drug it owns.

        Returns:
            Number of drugs removed

        Raises:
            InvalidCredentialsException: If the password does not match
        """
        self.verify_user_password(username, password)

        deleted = self.drug_repository.delete_all_by_owner(username)
        self.user_repository.delete(username)
        if self.cache is not None:
            self.cache.invalidate_owner(username)

        logger.info("Deleted account %s and %d drug(s)", username, deleted)
        return deleted

    def verify_user_password(self, username: str, password: str) -> None:
        """Raise InvalidCredentialsException unless the password matches."""
        user = self._get_user(username)
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsException("Invalid password")

    def _get_user(self, username: str) -> User:
        user = self.user_repository.get_by_username(username)
        if user is None:
            raise UserNotFoundException(f"User '{username}' not found")
        return user

    @staticmethod
    def _to_profile(user: User) -> ProfileResponse:
        return ProfileResponse(
            username=user.username,
            email=user.email,
            alerts_enabled=user.alerts_enabled,
            created_at=user.created_at
        )
