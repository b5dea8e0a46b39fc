"""A JSON array on disk, shared by the JSON repositories.

Every read-modify-write holds two locks: a re-entrant thread lock for
writers inside this process and a ``filelock`` on a sidecar ``.lock``
file for writers in other processes (each CLI command is its own
process).  Writes go to a uniquely named temporary file in the same
directory that is then renamed over the original, so readers never see
half a file.  Any I/O or decoding failure surfaces as
StoreUnavailableError.
"""

from __future__ import annotations

import functools
import json
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from ims.domain.exceptions import StoreUnavailableError

# Seconds to wait for another process to release a store.
LOCK_TIMEOUT = 30

_locks: dict[Path, tuple[threading.RLock, FileLock]] = {}
_locks_guard = threading.Lock()


def store_errors(method):
    """Report records that do not decode as StoreUnavailableError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise StoreUnavailableError(
                f"Malformed record in {self._file.path.name}: {exc!r}"
            ) from exc

    return wrapper


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self.path = file_path.resolve()
        with _locks_guard:
            if self.path not in _locks:
                # The thread lock serializes access to the FileLock counter.
                _locks[self.path] = (
                    threading.RLock(),
                    FileLock(
                        str(self.path) + ".lock",
                        timeout=LOCK_TIMEOUT,
                        thread_local=False,
                    ),
                )
            self._lock, self._file_lock = _locks[self.path]
        self._ensure_file()

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Exclusive access to the file, across threads and processes."""
        with self._lock:
            try:
                self._file_lock.acquire()
            except (Timeout, OSError) as exc:
                raise StoreUnavailableError(f"Cannot lock {self.path.name}: {exc}") from exc
            try:
                yield
            finally:
                self._file_lock.release()

    def read(self) -> list[dict]:
        with self._lock:
            try:
                return json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise StoreUnavailableError(f"Cannot read {self.path.name}: {exc}") from exc

    def write(self, records: list[dict]) -> None:
        with self.locked():
            tmp_name = None
            try:
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self.path.parent,
                    prefix=self.path.name + ".",
                    suffix=".tmp",
                    delete=False,
                ) as tmp:
                    tmp_name = tmp.name
                    tmp.write(json.dumps(records, indent=2) + "\n")
                os.replace(tmp_name, self.path)
            except (OSError, TypeError, ValueError) as exc:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise StoreUnavailableError(f"Cannot write {self.path.name}: {exc}") from exc

    def _ensure_file(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailableError(f"Cannot create {self.path.name}: {exc}") from exc
        with self.locked():
            if self.path.exists():
                return
            try:
                self.path.write_text("[]", encoding="utf-8")
            except OSError as exc:
                raise StoreUnavailableError(f"Cannot create {self.path.name}: {exc}") from exc
