from __future__ import annotations

import threading
from typing import Dict, Optional

from .exceptions import AuthenticationFailedError, DuplicateUsernameError
from .models import UserRecord


class UserDirectory:
    """
    In-memory collection of user records keyed by username.

    Holds at most one record per username. The directory is an explicit
    object handed to the services and the menu; there is no module-level
    registry.
    """

    def __init__(self) -> None:
        self._records: Dict[str, UserRecord] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, username: object) -> bool:
        with self._lock:
            return username in self._records

    def add(self, record: UserRecord) -> None:
        with self._lock:
            if record.username in self._records:
                raise DuplicateUsernameError(
                    f"Username '{record.username}' is already taken."
                )
            self._records[record.username] = record

    def find(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            return self._records.get(username)

    def find_by_credentials(self, username: str, password: str) -> Optional[UserRecord]:
        """
        Return the record only if both username and password match.

        An unknown user and a wrong password look the same to the caller.
        """

        with self._lock:
            record = self._records.get(username)
            if record is None or not record.login(password):
                return None
            return record

    def remove(self, username: str, password: str) -> UserRecord:
        with self._lock:
            record = self.find_by_credentials(username, password)
            if record is None:
                raise AuthenticationFailedError("Invalid username or password!")
            del self._records[username]
            return record
