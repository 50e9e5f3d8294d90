import logging
import time
from dataclasses import dataclass

from app.core.errors import BadRequest, Conflict, MSG_BAD_CREDENTIALS, Unauthorized
from app.core.profiles import canonical_profile
from app.core.security import hash_password, is_password_hash, verify_password
from app.database import UserStore
from app.models.user import UserRecord
from app.repositories.user_repo import UserRepository
from app.schemas.identity import LocalIdentity, SessionIdentity
from app.schemas.user import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "User"


def timestamp_id() -> str:
    """Millisecond wall-clock timestamp as a string."""
    return str(int(time.time() * 1000))


@dataclass
class ResolvedRecord:
    """
    A user record together with the full store snapshot it came from.

    Mutate `users[index]` and save `users` once.
    """

    user: UserRecord
    users: list[UserRecord]
    index: int


class UserService:
    """
    Business logic for UserRecord.

    Responsibilities:
      - local registration and login
      - translate a session identity into a stored record
        (creating one on first sight)
      - map domain errors to HTTP errors

    Every method that reads and then writes the store expects the
    caller to hold `store.locked()`; the public entry points below
    take the lock themselves.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Local accounts -----

    def register(self, store: UserStore, payload: RegisterRequest) -> UserRecord:
        """
        Create a local account.

        Rules:
          - name, email and password are all required (400)
          - email must not already be taken (409)
          - the new record starts with an empty cart
        """
        if not (payload.name and payload.email and payload.password):
            raise BadRequest()

        with store.locked():
            users = self.repo.load_all(store)
            if self.repo.email_exists(users, payload.email):
                raise Conflict()

            user = UserRecord(
                id=timestamp_id(),
                name=payload.name,
                email=payload.email,
                password=hash_password(payload.password),
                cart=[],
            )
            self.repo.append(users, user)
            self.repo.save_all(store, users)

        logger.info("Registered local user %s", user.email)
        return user

    def authenticate(self, store: UserStore, payload: LoginRequest) -> UserRecord:
        """
        Check local credentials.

        A legacy plaintext password that matches is re-hashed
        and saved on the way through.

        Raises:
            BadRequest: if email or password is missing.
            Unauthorized: if no record matches both.
        """
        if not (payload.email and payload.password):
            raise BadRequest()

        with store.locked():
            users = self.repo.load_all(store)
            for user in users:
                if user.email != payload.email:
                    continue
                if not verify_password(payload.password, user.password):
                    continue

                if not is_password_hash(user.password):
                    user.password = hash_password(payload.password)
                    self.repo.save_all(store, users)
                    logger.info("Upgraded plaintext password for %s", user.email)
                return user

        raise Unauthorized(MSG_BAD_CREDENTIALS)

    @staticmethod
    def local_identity(user: UserRecord) -> LocalIdentity:
        """Session identity for a local account (never carries the password)."""
        return LocalIdentity(
            profile=user.model_dump(include={"id", "name", "email"}),
        )

    # ----- Identity -> record -----

    def resolve_record(self, store: UserStore, identity: SessionIdentity) -> ResolvedRecord:
        """
        Find the stored record for a session identity, creating it if needed.

        Match order:
          1. email (when the profile has one)
          2. provider id (stringified)

        A new record takes the provider id (or a timestamp), the profile's
        display name (or "User") and an empty password and cart; it is
        written immediately.

        Caller must hold `store.locked()`.
        """
        profile = canonical_profile(identity)
        users = self.repo.load_all(store)

        idx = -1
        if profile.email:
            idx = self.repo.find_by_email(users, profile.email)
        if idx == -1 and profile.id:
            idx = self.repo.find_by_id(users, profile.id)

        if idx == -1:
            user = UserRecord(
                id=profile.id or timestamp_id(),
                name=profile.name or DEFAULT_USER_NAME,
                email=profile.email,
                password="",
                cart=[],
            )
            idx = self.repo.append(users, user)
            self.repo.save_all(store, users)
            logger.info("Created user record %s for %s identity", user.id, identity.provider)

        return ResolvedRecord(user=users[idx], users=users, index=idx)
