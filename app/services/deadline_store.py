"""
Deadline Store — the whole durable state of the bot.

One JSON document keyed by user id (see app/schemas/deadline.py for the
record shape). Loaded wholesale at startup, rewritten wholesale after every
mutation. Writes go to a sibling temp file that is then os.replace()d over
the real one, so a crash never leaves a half-written document.

A file that cannot be read or validated is renamed to `<name>.corrupt`
and the store starts empty.

A write failure is logged and reported through the return value of save();
the in-memory records are kept as they are (best-effort durability).

Only DeadlineEngine mutates `records`.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from app.schemas.deadline import UserDeadlineRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(dict[str, UserDeadlineRecord])


class DeadlineStore:
    """
    File-backed mapping user id → UserDeadlineRecord.

    `path=None` gives a purely in-memory store (nothing is ever written).
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path else None
        self.records: dict[str, UserDeadlineRecord] = {}

    @classmethod
    def open(cls, path: Optional[str | Path]) -> "DeadlineStore":
        store = cls(path)
        store.load()
        return store

    def load(self) -> dict[str, UserDeadlineRecord]:
        """Replace in-memory records with the file contents (empty if absent or unreadable)."""
        self.records = {}
        if self.path is None or not self.path.exists():
            return self.records
        try:
            self.records = _RECORDS.validate_json(self.path.read_bytes())
        except (OSError, ValidationError):
            logger.exception("Could not load deadlines from %s; starting empty", self.path)
            self._move_aside()
            return self.records
        logger.info("Loaded %d user deadline records from %s", len(self.records), self.path)
        return self.records

    def save(self) -> bool:
        if self.path is None:
            return True
        payload = _RECORDS.dump_json(self.records, by_alias=True, indent=2)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(payload)
            os.replace(tmp, self.path)
        except OSError:
            logger.exception("Failed to persist deadlines to %s", self.path)
            return False
        logger.debug("Deadlines saved to %s", self.path)
        return True

    def _move_aside(self) -> None:
        """Rename an unreadable file to `<name>.corrupt` so the next save cannot overwrite it."""
        target = self.path.with_name(self.path.name + ".corrupt")
        try:
            os.replace(self.path, target)
        except OSError:
            logger.exception("Could not move %s aside", self.path)
            return
        logger.warning("Unreadable deadlines file kept as %s", target)
