from __future__ import annotations

from typing import Protocol

from .models import UserRecord


class RecordStore(Protocol):
    """
    Abstraction over user record persistence.

    Implementations are responsible for:
    - Turning a `UserRecord` into a stored blob and back, without
      re-deriving the password digest.
    - Reporting a missing or unreadable blob as `RecordNotFoundError`.
    """

    def save(self, record: UserRecord) -> None:
        """Persist `record`, overwriting any previous copy."""

        ...

    def load(self, username: str) -> UserRecord:
        """
        Return the stored record for `username`.

        Raises `RecordNotFoundError` if nothing usable is stored.
        """

        ...

    def delete(self, username: str) -> bool:
        """
        Remove the stored record. Returns False if there was none.

        Raises `RecordStoreError` if the record exists but cannot be removed.
        """

        ...
