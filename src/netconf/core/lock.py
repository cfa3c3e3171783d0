"""Exclusive lock serializing concurrent hook invocations."""

from __future__ import annotations

import fcntl
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


@contextmanager
def acquire(path: Path) -> Iterator[None]:
    """Hold an exclusive flock on path for the body of the with block.

    Blocks until the lock is free. Interrupted waits are retried by the
    interpreter (PEP 475). Raises OSError if the file can't be opened or
    locked.
    """
    with open(path, "w") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
