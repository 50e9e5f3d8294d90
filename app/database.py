import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from fastapi import Request

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# Flat-file user store
#
# - the whole file is a JSON array of user records
# - it is read and rewritten in full on every mutation
# - callers hold `store.locked()` across a read-modify-write
#   cycle so two requests in this process cannot interleave
#   (e.g. two registrations with the same email)
#
# Multiple worker processes are NOT coordinated.
# ---------------------------------------------------------


class UserStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def ensure_file(self) -> None:
        """Create the file as an empty array if it does not exist."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("[]", encoding="utf-8")

    def read_users(self) -> list[dict[str, Any]]:
        """
        Load every raw record.

        An empty or unparseable file reads as an empty list.
        """
        self.ensure_file()
        text = self.path.read_text(encoding="utf-8")
        try:
            data = json.loads(text or "[]")
        except json.JSONDecodeError:
            logger.error("User store %s is not valid JSON, treating as empty", self.path)
            return []
        if not isinstance(data, list):
            logger.error("User store %s does not hold an array, treating as empty", self.path)
            return []
        return data

    def write_users(self, users: list[dict[str, Any]]) -> None:
        """Rewrite the whole file, pretty-printed."""
        self.path.write_text(
            json.dumps(users, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    @contextmanager
    def locked(self) -> Iterator["UserStore"]:
        """Serialize a read-modify-write cycle."""
        with self._lock:
            yield self


def get_store(request: Request) -> UserStore:
    """
    FastAPI dependency returning the app's UserStore.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(store: UserStore = Depends(get_store)):
            ...
    """
    return request.app.state.user_store
