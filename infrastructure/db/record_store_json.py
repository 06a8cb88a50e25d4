from __future__ import annotations

import json
from pathlib import Path

from domain.exceptions import RecordNotFoundError, RecordStoreError
from domain.models import UserRecord
from domain.repositories import RecordStore
from infrastructure.serialization import record_from_dict, record_to_dict


class JsonFileRecordStore(RecordStore):
    """
    File-backed implementation of `RecordStore`.

    Each user is written to `<directory>/<username>.json`. Saving
    overwrites the previous file; there is no journaling.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def _path_for(self, username: str) -> Path:
        # Keep the file inside the store directory whatever the username is.
        if not username or Path(username).name != username:
            raise RecordNotFoundError(f"Invalid username for storage: {username!r}")
        return self._directory / f"{username}{self.SUFFIX}"

    def save(self, record: UserRecord) -> None:
        path = self._path_for(record.username)
        try:
            with path.open("w", encoding="utf-8") as fh:
                json.dump(record_to_dict(record), fh, indent=2)
        except OSError as exc:
            raise RecordStoreError(f"Could not write {path}: {exc}") from exc

    def load(self, username: str) -> UserRecord:
        path = self._path_for(username)
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError as exc:
            raise RecordNotFoundError(f"No stored record for {username!r}") from exc
        # ValueError covers both JSONDecodeError and UnicodeDecodeError.
        except (OSError, ValueError) as exc:
            raise RecordNotFoundError(f"Unreadable record for {username!r}: {exc}") from exc

        if not isinstance(data, dict):
            raise RecordNotFoundError(f"Unreadable record for {username!r}")
        return record_from_dict(data, expected_username=username)

    def delete(self, username: str) -> bool:
        path = self._path_for(username)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise RecordStoreError(f"Could not remove {path}: {exc}") from exc
        return True
