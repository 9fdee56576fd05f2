"""
Consultation Store.

The mutable, versioned holder of the user's answers. Updates are shallow
merges: keys present in the partial replace the current value, a key whose
value is None removes the answer, absent keys are left alone.

Merges never fail. Values that would break the record's invariants (power
level outside 1-4, negative budget, unknown enum value) are dropped and
reported back to the caller, the same way the form layer ignores unknown
options.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from .record import ConsultationRecord
from .validation import ValidationResult, validate_step

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of merging a partial update into a record."""
    record: ConsultationRecord
    rejected: list[str] = field(default_factory=list)


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    return value


def merge_record(record: ConsultationRecord, partial: Mapping[str, Any]) -> MergeResult:
    """
    Shallow-merge `partial` into `record`, returning a new record.

    Accepts snake_case names or camelCase aliases. Unknown keys and invalid
    values end up in `rejected`; everything else is applied.
    """
    merged = record.answered()
    original = dict(merged)
    applied: set[str] = set()
    rejected: list[str] = []

    for key, value in partial.items():
        name = ConsultationRecord.field_name(key)
        if name is None:
            logger.info(f"Unknown consultation field (ignored): {key}")
            rejected.append(key)
            continue
        if value is None:
            merged.pop(name, None)
        else:
            merged[name] = _plain(value)
        applied.add(name)

    try:
        return MergeResult(ConsultationRecord.model_validate(merged), rejected)
    except ValidationError as e:
        invalid = set()
        for error in e.errors():
            if error["loc"]:
                invalid.add(ConsultationRecord.field_name(str(error["loc"][0])) or str(error["loc"][0]))

    for name in invalid:
        logger.info(f"Invalid value for consultation field (ignored): {name}")
        rejected.append(name)
        if name in original:
            merged[name] = original[name]
        else:
            merged.pop(name, None)

    try:
        return MergeResult(ConsultationRecord.model_validate(merged), rejected)
    except ValidationError as e:
        # The starting record was valid, so this only happens on a bad alias mapping
        logger.error(f"Consultation merge fell back to previous record: {e}")
        return MergeResult(record, rejected + sorted(applied - set(rejected)))


class ConsultationStore:
    """
    Versioned consultation record.

    The version increments on every applied update so snapshots can be
    compared and stale writes detected.
    """

    def __init__(self, record: ConsultationRecord | None = None, version: int = 0):
        self._record = record if record is not None else ConsultationRecord.default()
        self._version = version

    @property
    def record(self) -> ConsultationRecord:
        return self._record

    @property
    def version(self) -> int:
        return self._version

    def update(self, partial: Mapping[str, Any]) -> list[str]:
        """Merge a partial update. Returns the names of rejected fields."""
        result = merge_record(self._record, partial)
        if result.record != self._record:
            self._record = result.record
            self._version += 1
        return result.rejected

    def reset(self) -> None:
        """Back to the default record."""
        self._record = ConsultationRecord.default()
        self._version = 0

    def validate(self, step_index: int) -> ValidationResult:
        return validate_step(step_index, self._record)

    def to_dict(self) -> dict:
        return {"version": self._version, "data": self._record.to_wire()}

    @classmethod
    def from_dict(cls, data: dict) -> "ConsultationStore":
        """
        Restore from a snapshot dict.

        Keys the snapshot lacks keep their defaults; everything it has is
        taken verbatim.
        """
        if not isinstance(data, dict) or not isinstance(data.get("data", {}), dict):
            raise TypeError("Consultation snapshot must be an object with an object \"data\"")
        record_data = {**ConsultationRecord.default().to_wire(), **data.get("data", {})}
        return cls(
            record=ConsultationRecord.model_validate(record_data),
            version=int(data.get("version", 0)),
        )
