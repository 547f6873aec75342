"""
JSON File Storage Implementation

DESIGN DECISION: A local directory with one `<key>.json` file per key is
the default durable store because:
1. A personal budget is small; the whole ledger fits in one file
2. No database setup required
3. The file is readable and easy to back up by hand

TRADEOFFS:
- Every save rewrites the whole snapshot (fine at personal scale)
- No cross-process locking; one app instance owns the data dir

Writes go to a temporary file in the same directory and are moved over
the target with os.replace, so a crash never leaves half a snapshot.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spendwise.services.storage.interface import (
    KeyValueStore,
    StorageError,
    StorageWriteError,
)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value store backed by one file per key in `data_dir`.

    Transient OS errors on write (e.g. a file briefly locked by a backup
    tool) are retried with exponential backoff before giving up.
    """

    def __init__(
        self,
        data_dir: Path,
        write_attempts: int = 3,
        backoff_multiplier: float = 0.2,
    ):
        self._data_dir = Path(data_dir)
        self._write_attempts = write_attempts
        self._backoff_multiplier = backoff_multiplier

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Unsupported storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        retrying = Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=self._backoff_multiplier, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write_atomic(path, value)
        except (OSError, RetryError) as e:
            raise StorageWriteError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def _write_atomic(self, path: Path, value: str) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._data_dir,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            # Never leave stray temp files behind a failed attempt
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
