"""
Key-value persistence for recruiter state.

The state machine is the only caller. Stores hold complete snapshots and
have no versioning: the last write wins.
"""
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

from models.schemas import RecruiterState
from utils.config import config

logger = logging.getLogger(__name__)


class StateStore:
    """Interface for recruiter state persistence."""

    def get(self, key: str) -> Optional[RecruiterState]:
        raise NotImplementedError

    def put(self, key: str, state: RecruiterState) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStateStore(StateStore):
    """Process-local store. Snapshots are copied in and out."""

    def __init__(self):
        self._records: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[RecruiterState]:
        record = self._records.get(key)
        if record is None:
            return None
        return RecruiterState.model_validate(record)

    def put(self, key: str, state: RecruiterState) -> None:
        self._records[key] = state.model_dump(mode="json")

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._records


class JsonFileStateStore(StateStore):
    """
    One JSON file per key under a directory.

    Writes go to a temporary file that is renamed over the target, so a
    reader never sees a half-written snapshot.
    """

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, persist_dir: Optional[str] = None):
        self.persist_dir = Path(persist_dir or config.storage.persist_dir)
        self.persist_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"State store initialized at {self.persist_dir}")

    def _path(self, key: str) -> Path:
        return self.persist_dir / f"{self._UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Optional[RecruiterState]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return RecruiterState.model_validate(json.load(f))

    def put(self, key: str, state: RecruiterState) -> None:
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.persist_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.model_dump(mode="json"), f)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


def create_state_store() -> StateStore:
    """Build the store selected by configuration."""
    if config.storage.backend == "file":
        return JsonFileStateStore()
    return InMemoryStateStore()
