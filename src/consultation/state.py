"""
Wizard Session State.

A WizardSession is the complete, serializable state of one consultation:
where the user is, what they've answered, and whether they're done.
It is persisted as a versioned JSON snapshot after every mutation so a
reload resumes exactly where the user left off.
"""

import json
import random
import string
import time
from dataclasses import dataclass, field

from .record import ConsultationRecord
from .store import ConsultationStore

# Bump when the snapshot layout changes; older snapshots are discarded
SNAPSHOT_VERSION = 1

_BASE36 = string.digits + string.ascii_lowercase


class SnapshotError(ValueError):
    """A persisted snapshot could not be decoded into a session."""


def generate_session_id(purpose: str = "wizard") -> str:
    """
    Build an id of the form "<purpose>-<ms timestamp>-<9 base36 chars>".

    Uniqueness is probabilistic. Don't use it as a primary key without
    enforcing uniqueness upstream.
    """
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"{purpose}-{int(time.time() * 1000)}-{suffix}"


@dataclass
class WizardSession:
    """State owned by a single WizardStateMachine."""
    session_id: str = field(default_factory=generate_session_id)
    current_step_index: int = 0
    is_complete: bool = False
    store: ConsultationStore = field(default_factory=ConsultationStore)

    @property
    def record(self) -> ConsultationRecord:
        return self.store.record

    def to_dict(self) -> dict:
        """Serialize session to dict for JSON storage."""
        return {
            "session_id": self.session_id,
            "current_step_index": self.current_step_index,
            "is_complete": self.is_complete,
            "consultation": self.store.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WizardSession":
        """Deserialize session from dict. Missing keys fall back to defaults."""
        if not isinstance(data, dict):
            raise TypeError("Session snapshot must be an object")
        session = cls()
        if "session_id" in data:
            session.session_id = str(data["session_id"])
        if "current_step_index" in data:
            session.current_step_index = int(data["current_step_index"])
        if "is_complete" in data:
            session.is_complete = bool(data["is_complete"])
        if "consultation" in data:
            session.store = ConsultationStore.from_dict(data["consultation"])
        return session

    def to_json(self) -> str:
        """Serialize to a versioned JSON snapshot."""
        return json.dumps({"version": SNAPSHOT_VERSION, "session": self.to_dict()})

    @classmethod
    def from_json(cls, json_str: str) -> "WizardSession":
        """
        Decode a versioned snapshot.

        Raises SnapshotError for anything that isn't a current-version
        snapshot of a valid session.
        """
        try:
            payload = json.loads(json_str)
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Unparsable snapshot: {e}") from e

        if not isinstance(payload, dict) or payload.get("version") != SNAPSHOT_VERSION:
            raise SnapshotError("Snapshot version mismatch")

        data = payload.get("session")
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot has no session")

        try:
            return cls.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise SnapshotError(f"Invalid session in snapshot: {e}") from e
