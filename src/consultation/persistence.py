"""
Wizard Session Persistence.

A narrow key/value port: one storage key maps to one JSON snapshot string.
The wizard only ever calls load(), save() and clear(); which backend sits
behind it is decided by whoever constructs the wizard.

Backends:
- InMemorySessionStorage: tests and single-process use
- FileSessionStorage: one JSON file per key under a directory
- SupabaseSessionStorage: a row per key in the wizard_sessions table
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "deck-wizard-state"
SESSIONS_TABLE = "wizard_sessions"


@dataclass
class PersistenceWarning:
    """A snapshot read/write failure. Non-blocking; the wizard keeps going in memory."""
    operation: str  # "load", "save" or "clear"
    message: str

    def to_dict(self) -> dict:
        return {"operation": self.operation, "message": self.message}


@runtime_checkable
class SessionStorage(Protocol):
    """
    Persistence port for wizard snapshots.

    Implementations are bound to a single key at construction. load()
    returns None when nothing is stored. Any method may raise; the wizard
    turns failures into PersistenceWarnings.
    """

    key: str

    def load(self) -> str | None:
        ...

    def save(self, data: str) -> None:
        ...

    def clear(self) -> None:
        ...


# =============================================================================
# In-memory
# =============================================================================


class InMemorySessionStorage:
    """
    Dict-backed storage.

    Pass a shared `backing` dict to let several wizard instances (e.g. one
    per HTTP request) see the same snapshots.
    """

    def __init__(self, key: str = DEFAULT_STORAGE_KEY, backing: dict[str, str] | None = None):
        self.key = key
        self._backing = backing if backing is not None else {}

    def load(self) -> str | None:
        return self._backing.get(self.key)

    def save(self, data: str) -> None:
        self._backing[self.key] = data

    def clear(self) -> None:
        self._backing.pop(self.key, None)


# =============================================================================
# File
# =============================================================================


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileSessionStorage:
    """One `<key>.json` file per key. The directory is created on first save."""

    def __init__(self, key: str = DEFAULT_STORAGE_KEY, directory: str | Path = ".moxmuse/sessions"):
        self.key = key
        self.directory = Path(directory)

    @property
    def path(self) -> Path:
        return self.directory / f"{_UNSAFE_CHARS.sub('_', self.key)}.json"

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def save(self, data: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a crash mid-write never leaves half a snapshot
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(data, encoding="utf-8")
        tmp.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# =============================================================================
# Supabase
# =============================================================================


class SupabaseSessionStorage:
    """
    Row-per-key storage in Supabase.

    Expects a table shaped like:
        wizard_sessions(storage_key text primary key, state text, updated_at timestamptz)
    """

    def __init__(self, key: str, client: Any, table: str = SESSIONS_TABLE):
        self.key = key
        self.client = client
        self.table = table

    def load(self) -> str | None:
        result = self.client.table(self.table).select("state").eq("storage_key", self.key).execute()
        if not result.data:
            return None
        return result.data[0].get("state")

    def save(self, data: str) -> None:
        self.client.table(self.table).upsert({
            "storage_key": self.key,
            "state": data,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).execute()

    def clear(self) -> None:
        self.client.table(self.table).delete().eq("storage_key", self.key).execute()


# =============================================================================
# Factory
# =============================================================================


def create_storage(
    key: str = DEFAULT_STORAGE_KEY,
    backend: str = "memory",
    *,
    directory: str | Path | None = None,
    client: Any = None,
    backing: dict[str, str] | None = None,
) -> SessionStorage:
    """
    Build a storage adapter by backend name ("memory", "file" or "supabase").

    The supabase backend needs a client; callers usually pass
    moxmuse.db.get_service_client().
    """
    if backend == "memory":
        return InMemorySessionStorage(key, backing=backing)
    if backend == "file":
        if directory is None:
            return FileSessionStorage(key)
        return FileSessionStorage(key, directory=directory)
    if backend == "supabase":
        if client is None:
            raise ValueError("Supabase session storage requires a client")
        return SupabaseSessionStorage(key, client)
    raise ValueError(f"Unknown session storage backend: {backend}")
