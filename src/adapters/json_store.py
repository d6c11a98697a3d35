"""JSON file storage adapter.

Implements the core OrderStorePort on top of a single pretty-printed JSON
array. The whole collection is rewritten on every append.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from core.errors import StoreWriteError
from core.models import OrderRecord

LOGGER = logging.getLogger(__name__)


class JsonOrderStore:
    """Append-only order collection that satisfies the OrderStorePort contract."""

    def __init__(self, path: str) -> None:
        self._path = path
        # Raw bytes of an unparseable file, kept until the next persist so the
        # content is copied aside before it is overwritten.
        self._corrupt_content: Optional[bytes] = None

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> List[OrderRecord]:
        """Return the persisted orders.

        A missing, empty or unparseable file yields an empty list. Parse
        failures are logged, never raised.
        """

        self._corrupt_content = None
        try:
            with open(self._path, "rb") as handle:
                raw = handle.read()
        except FileNotFoundError:
            return []
        except OSError as exc:
            LOGGER.error("Error reading JSON file %s: %s", self._path, exc)
            return []

        if not raw.strip():
            return []

        try:
            data = json.loads(raw.decode("utf-8-sig"))
        except ValueError as exc:
            LOGGER.error("Error reading or parsing JSON file %s: %s", self._path, exc)
            self._corrupt_content = raw
            return []

        if not isinstance(data, list):
            LOGGER.error("JSON file %s does not contain a list of orders", self._path)
            self._corrupt_content = raw
            return []

        records: List[OrderRecord] = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                LOGGER.warning("Ignoring non-object entry #%s in %s", index, self._path)
                continue
            records.append(OrderRecord.from_dict(entry))
        return records

    def append(self, existing: Iterable[OrderRecord], new_records: Iterable[OrderRecord]) -> List[OrderRecord]:
        """Concatenate and persist the full collection, returning it."""

        combined = list(existing) + list(new_records)
        self.persist(combined)
        return combined

    def append_new(self, new_records: Iterable[OrderRecord]) -> List[OrderRecord]:
        """Load the current collection and append ``new_records`` to it."""

        return self.append(self.load(), new_records)

    def persist(self, records: Iterable[OrderRecord]) -> None:
        """Rewrite the collection through a temp file and an atomic rename.

        Raises StoreWriteError when the file cannot be written.
        """

        payload = json.dumps([record.to_dict() for record in records], indent=4, ensure_ascii=False)
        directory = os.path.dirname(os.path.abspath(self._path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            self._backup_corrupt_content()
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(self._path)}.",
                suffix=".tmp",
                dir=directory,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as exc:
            raise StoreWriteError(f"Failed to write {self._path}: {exc}") from exc
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)

    def _backup_corrupt_content(self) -> None:
        if self._corrupt_content is None:
            return
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup_path = f"{self._path}.corrupt-{stamp}"
        with open(backup_path, "wb") as handle:
            handle.write(self._corrupt_content)
        LOGGER.warning("Unreadable order file content saved to %s", backup_path)
        self._corrupt_content = None
