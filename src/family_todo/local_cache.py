from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .schemas import TodoOut
from .seeds import DEFAULT_TODOS, SEED_TIMESTAMP

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "family-todo-app"

_TODO_LIST = TypeAdapter(List[TodoOut])


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache write. ``error`` describes the failure when ``ok`` is False."""

    ok: bool
    error: Optional[str] = None


def seed_todos() -> List[TodoOut]:
    """The fixed list handed out when nothing usable is persisted."""
    return [TodoOut(**t, created_at=SEED_TIMESTAMP, updated_at=SEED_TIMESTAMP) for t in DEFAULT_TODOS]


# PUBLIC_INTERFACE
class LocalCache:
    """
    Best-effort on-disk mirror of the last known todo list.

    One JSON document per key, stored as ``<directory>/<key>.json``. The cache is
    not authoritative: whatever was written last wins, and neither method ever
    raises.
    """

    def __init__(self, directory: Union[str, Path], key: str = DEFAULT_CACHE_KEY) -> None:
        self._path = Path(directory) / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[TodoOut]:
        """Return the persisted list, or the seed list if it is missing or unreadable."""
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return seed_todos()
        except OSError as e:
            logger.warning("Cannot read todo cache %s: %s", self._path, e)
            return seed_todos()

        try:
            return _TODO_LIST.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("Ignoring corrupt todo cache %s (%d errors)", self._path, e.error_count())
            return seed_todos()

    def save(self, todos: Sequence[TodoOut]) -> CacheResult:
        """Overwrite the persisted list. Failures are logged and reported, not raised."""
        try:
            data = _TODO_LIST.dump_json(list(todos), by_alias=True)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), prefix=f".{self._path.name}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp, self._path)
            except BaseException:
                os.unlink(tmp)
                raise
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning("Failed to save todo cache %s: %s", self._path, e)
            return CacheResult(ok=False, error=str(e))
        return CacheResult(ok=True)
