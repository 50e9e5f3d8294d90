from app.database import UserStore
from app.models.user import UserRecord


class UserRepository:
    """
    Data access layer for UserRecord.

    Responsibilities:
      - Pure store operations (load, save, lookups over the loaded list)
      - No FastAPI, no HTTP, no business logic

    Lookups return an index into the loaded list so callers can
    mutate a record in place and save the whole list once.
    """

    # ----- Whole-store IO -----

    def load_all(self, store: UserStore) -> list[UserRecord]:
        """Read every record from the store."""
        return [UserRecord.model_validate(raw) for raw in store.read_users()]

    def save_all(self, store: UserStore, users: list[UserRecord]) -> None:
        """Rewrite the store with the given records."""
        store.write_users([u.model_dump() for u in users])

    # ----- Lookups -----

    def find_by_email(self, users: list[UserRecord], email: str) -> int:
        """Index of the first record with this exact email, or -1."""
        for idx, user in enumerate(users):
            if user.email == email:
                return idx
        return -1

    def find_by_id(self, users: list[UserRecord], user_id: str) -> int:
        """Index of the first record whose id matches, or -1."""
        for idx, user in enumerate(users):
            if user.id == str(user_id):
                return idx
        return -1

    def email_exists(self, users: list[UserRecord], email: str) -> bool:
        return self.find_by_email(users, email) != -1

    # ----- Mutations on the loaded list -----

    def append(self, users: list[UserRecord], user: UserRecord) -> int:
        """Add a record and return its index."""
        users.append(user)
        return len(users) - 1
