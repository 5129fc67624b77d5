"""File-backed history of saved analyses.

WHY: Exports start from a saved analysis. The app keeps the most recent
analyses so a user can come back, search them, and export again. A single
JSON file is enough for one user's history; no database is involved.

HOW: HistoryStore keeps records in a JSON list on disk, newest first.
Every public method re-reads the file under a threading.Lock, applies the
change, and writes the whole list back through a temp file + replace.

RULES:
- At most ``limit`` records are kept; older ones are dropped on save
- If a write fails, one retry keeps only half the limit; a second failure
  raises HistoryStorageError
- A missing file is an empty history; an unreadable or corrupt file is
  logged and also treated as empty
- Record IDs look like "analysis_<epoch-ms>_<9 base-36 chars>"
- update() never touches id or created_at and always bumps updated_at
"""

from __future__ import annotations

import json
import logging
import os
import random
import string
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from analysis_export import config
from analysis_export.core.ir import AnalysisRecord, Token
from analysis_export.exceptions import HistoryStorageError, InvalidRecordError

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase
_UPDATABLE_FIELDS = frozenset({"sentence", "tokens", "translation", "audio_ref"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id(now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return "analysis_{}_{}".format(millis, suffix)


class HistoryStore:
    """Thread-safe JSON-file store for AnalysisRecords.

    Args:
        path: History file location; defaults to config.HISTORY_PATH.
        limit: Maximum number of records kept; defaults to
            config.HISTORY_LIMIT.
        clock: Returns the current aware datetime (injectable for tests).
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        limit: int = config.HISTORY_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = Path(path) if path is not None else config.HISTORY_PATH
        self.limit = limit
        self._clock = clock
        self._lock = threading.Lock()

    # -- persistence -------------------------------------------------------

    def _read(self) -> List[AnalysisRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise InvalidRecordError("History file must contain a JSON list")
            records = [AnalysisRecord.from_dict(item) for item in raw]
        except (OSError, ValueError) as exc:
            logger.error("Failed to load history from %s: %s", self.path, exc)
            return []
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    def _write_file(self, records: List[AnalysisRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2)
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def _write(self, records: List[AnalysisRecord]) -> None:
        try:
            self._write_file(records[: self.limit])
            return
        except OSError:
            logger.exception("Failed to save history to %s; retrying with fewer records", self.path)
        try:
            self._write_file(records[: max(1, self.limit // 2)])
        except OSError as exc:
            logger.exception("Failed to save reduced history to %s", self.path)
            raise HistoryStorageError("Could not write history file {}".format(self.path)) from exc

    # -- queries -----------------------------------------------------------

    def list_records(self) -> List[AnalysisRecord]:
        """All records, newest first."""
        with self._lock:
            return self._read()

    def get(self, record_id: str) -> Optional[AnalysisRecord]:
        """Look up a record by ID; None if it does not exist."""
        with self._lock:
            for record in self._read():
                if record.id == record_id:
                    return record
        return None

    def search(self, query: str) -> List[AnalysisRecord]:
        """Case-insensitive search over sentence, translation and tokens."""
        needle = query.lower()
        matches = []
        for record in self.list_records():
            if needle in record.sentence.lower():
                matches.append(record)
            elif record.translation and needle in record.translation.lower():
                matches.append(record)
            elif any(
                needle in token.word.lower()
                or (token.furigana is not None and needle in token.furigana.lower())
                for token in record.tokens
            ):
                matches.append(record)
        return matches

    # -- mutations ---------------------------------------------------------

    def save(
        self,
        sentence: str,
        tokens: Iterable[Token],
        translation: Optional[str] = None,
        audio_ref: Optional[str] = None,
    ) -> AnalysisRecord:
        """Store a new analysis and return it."""
        now = self._clock()
        record = AnalysisRecord(
            id=new_record_id(now),
            sentence=sentence,
            tokens=tuple(tokens),
            created_at=now,
            updated_at=now,
            translation=translation,
            audio_ref=audio_ref,
        )
        with self._lock:
            records = self._read()
            records.insert(0, record)
            self._write(records)
        logger.info("Saved analysis %s", record.id)
        return record

    def update(self, record_id: str, **changes: Any) -> Optional[AnalysisRecord]:
        """Replace fields of a stored record; None if the ID is unknown.

        Raises:
            ValueError: If ``changes`` names a field that cannot be updated.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError("Cannot update field(s): {}".format(", ".join(sorted(unknown))))
        if "tokens" in changes:
            changes["tokens"] = tuple(changes["tokens"])

        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if record.id == record_id:
                    updated_at = max(self._clock(), record.created_at)
                    updated = replace(record, updated_at=updated_at, **changes)
                    records[index] = updated
                    self._write(records)
                    return updated
        return None

    def delete(self, record_id: str) -> bool:
        """Remove a record; False if it did not exist."""
        with self._lock:
            records = self._read()
            remaining = [record for record in records if record.id != record_id]
            if len(remaining) == len(records):
                return False
            self._write(remaining)
        logger.info("Deleted analysis %s", record_id)
        return True

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            if self.path.exists():
                self.path.unlink()
        logger.info("Cleared history at %s", self.path)


def records_to_dicts(records: Iterable[AnalysisRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]
