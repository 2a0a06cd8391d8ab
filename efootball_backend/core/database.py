"""
Flat JSON entity store.

Each entity kind lives in its own file under DATA_DIR (teams.json,
matches.json, ...). Every read and write holds that file's FileLock, so the
store is single-writer per entity file; there is no transaction spanning
several files.
"""
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Type

from fastapi import Request
from filelock import FileLock, Timeout
from pydantic import ValidationError
from sqlmodel import SQLModel

from efootball_backend.core.config import settings
from efootball_backend.core.errors import NotFound, StorageError
from efootball_backend.core.locks import EntityLockRegistry
from efootball_backend.models import LeagueSettings, Match, PendingResult, Team, User

logger = logging.getLogger(__name__)

# --- Entity kinds ---
TEAM = "team"
MATCH = "match"
PENDING_RESULT = "pending_result"
USER = "user"

KIND_FILES = {
    TEAM: "teams.json",
    MATCH: "matches.json",
    PENDING_RESULT: "pending-results.json",
    USER: "users.json",
}

KIND_MODELS: Dict[str, Type[SQLModel]] = {
    TEAM: Team,
    MATCH: Match,
    PENDING_RESULT: PendingResult,
    USER: User,
}

SETTINGS_FILE = "settings.json"


class JsonEntityStore:
    """
    get/list/create/update/delete by id for every entity kind.
    Failures surface as StorageError; nothing falls back silently.
    """

    def __init__(self, data_dir: str, lock_timeout: float = 10.0):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout
        os.makedirs(data_dir, exist_ok=True)

        self._locks = {
            name: FileLock(os.path.join(data_dir, f"{name}.lock"), timeout=lock_timeout)
            for name in list(KIND_FILES.values()) + [SETTINGS_FILE]
        }
        # Per-record locks for read-modify-write units spanning several calls
        self.entity_locks = EntityLockRegistry(timeout=lock_timeout)

    # ---------------------------------------------
    # File helpers
    # ---------------------------------------------
    def _path(self, filename: str) -> str:
        return os.path.join(self.data_dir, filename)

    @contextmanager
    def _locked(self, filename: str):
        try:
            with self._locks[filename]:
                yield
        except Timeout as e:
            logger.error(f"Lock timeout on {filename} after {self.lock_timeout}s")
            raise StorageError(f"Storage is busy ({filename}), try again.") from e

    def _read_json(self, filename: str, default):
        path = self._path(filename)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return default
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Could not read {filename}.") from e

    def _write_json(self, filename: str, data) -> None:
        """Write to a temp file and swap it in, so readers never see half a file."""
        path = self._path(filename)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{filename}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Could not write {filename}.") from e

    def _load(self, kind: str) -> List[dict]:
        return self._read_json(KIND_FILES[kind], [])

    def _save(self, kind: str, records: List[dict]) -> None:
        self._write_json(KIND_FILES[kind], records)

    def _to_model(self, kind: str, record: dict):
        try:
            return KIND_MODELS[kind].model_validate(record)
        except ValidationError as e:
            raise StorageError(f"Corrupt {kind} record {record.get('id')}: {e}") from e

    @staticmethod
    def _dump(model: SQLModel) -> dict:
        return model.model_dump(mode="json")

    # ---------------------------------------------
    # CRUD
    # ---------------------------------------------
    def list(self, kind: str, where: Optional[Callable] = None) -> List:
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
        models = [self._to_model(kind, r) for r in records]
        if where is not None:
            models = [m for m in models if where(m)]
        return models

    def get(self, kind: str, entity_id: int):
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
        for record in records:
            if record.get("id") == entity_id:
                return self._to_model(kind, record)
        return None

    def create(self, kind: str, payload) -> SQLModel:
        """Insert a record and return it with its new id."""
        data = self._dump(payload) if isinstance(payload, SQLModel) else dict(payload)
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
            data["id"] = max((r.get("id") or 0 for r in records), default=0) + 1
            model = self._to_model(kind, data)
            records.append(self._dump(model))
            self._save(kind, records)
        return model

    def create_many(self, kind: str, payloads: List) -> List[SQLModel]:
        """Insert several records under one lock (schedule generation)."""
        created = []
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
            next_id = max((r.get("id") or 0 for r in records), default=0) + 1
            for payload in payloads:
                data = self._dump(payload) if isinstance(payload, SQLModel) else dict(payload)
                data["id"] = next_id
                next_id += 1
                model = self._to_model(kind, data)
                records.append(self._dump(model))
                created.append(model)
            self._save(kind, records)
        return created

    def update(self, kind: str, entity_id: int, patch: dict) -> SQLModel:
        """Merge `patch` into the stored record (the id is never overwritten)."""
        def apply(model):
            merged = {**self._dump(model), **patch, "id": entity_id}
            return self._to_model(kind, merged)

        return self.mutate(kind, entity_id, apply)

    def mutate(self, kind: str, entity_id: int, fn: Callable) -> SQLModel:
        """
        Atomic read-modify-write of one record.
        `fn` receives the current model and returns the new one (or mutates it in place
        and returns None). The whole cycle holds the file lock.
        """
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
            for index, record in enumerate(records):
                if record.get("id") == entity_id:
                    current = self._to_model(kind, record)
                    updated = fn(current)
                    if updated is None:
                        updated = current
                    # Re-validate so field constraints hold after the change
                    updated = self._to_model(kind, {**self._dump(updated), "id": entity_id})
                    records[index] = self._dump(updated)
                    self._save(kind, records)
                    return updated
        raise NotFound(f"{kind} {entity_id} not found.")

    def delete(self, kind: str, entity_id: int) -> bool:
        with self._locked(KIND_FILES[kind]):
            records = self._load(kind)
            remaining = [r for r in records if r.get("id") != entity_id]
            if len(remaining) == len(records):
                return False
            self._save(kind, remaining)
        return True

    def delete_where(self, kind: str, predicate: Callable) -> List[SQLModel]:
        """Delete every record matching `predicate`; returns the deleted models."""
        with self._locked(KIND_FILES[kind]):
            models = [self._to_model(kind, r) for r in self._load(kind)]
            deleted = [m for m in models if predicate(m)]
            if deleted:
                self._save(kind, [self._dump(m) for m in models if not predicate(m)])
        return deleted

    # ---------------------------------------------
    # Settings (single object, not a collection)
    # ---------------------------------------------
    def read_settings(self) -> Optional[LeagueSettings]:
        with self._locked(SETTINGS_FILE):
            data = self._read_json(SETTINGS_FILE, None)
        if not data:
            return None
        try:
            return LeagueSettings.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Corrupt settings file: {e}") from e

    def write_settings(self, league_settings: LeagueSettings) -> LeagueSettings:
        with self._locked(SETTINGS_FILE):
            self._write_json(SETTINGS_FILE, self._dump(league_settings))
        return league_settings


# --- Store construction (startup) ---
def create_store() -> JsonEntityStore:
    return JsonEntityStore(settings.DATA_DIR, lock_timeout=settings.STORE_LOCK_TIMEOUT)


# --- Store dependency (used in routes) ---
def get_store(request: Request) -> JsonEntityStore:
    return request.app.state.store
