# Persistence interface for clinic records, plus the in-memory store used locally and in tests
from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models import Clinic, clinic_from_record, clinic_to_record

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Transport or server failure talking to the clinic store"""


class ClinicNotFoundError(StoreError):
    """The clinic does not exist (or was deleted elsewhere)"""

    def __init__(self, clinic_id: str):
        super().__init__(f"Clinic not found: {clinic_id}")
        self.clinic_id = clinic_id


class ClinicStore(ABC):
    """Async CRUD contract for the hosted clinic table"""

    @abstractmethod
    async def select_all(self) -> List[Clinic]:
        pass

    @abstractmethod
    async def select_by_id(self, clinic_id: str) -> Clinic:
        """Raises ClinicNotFoundError when missing."""
        pass

    @abstractmethod
    async def insert(self, fields: Dict[str, Any]) -> Clinic:
        """Create a clinic; the store assigns its id."""
        pass

    @abstractmethod
    async def update(self, clinic_id: str, changes: Dict[str, Any]) -> Clinic:
        """Apply a partial update. Raises ClinicNotFoundError when missing."""
        pass

    @abstractmethod
    async def delete(self, clinic_id: str) -> None:
        """Hard delete. Raises ClinicNotFoundError when missing."""
        pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryClinicStore(ClinicStore):
    """
    Dict-backed store. Rows are kept as loose records and every read goes
    through clinic_from_record, same as a remote store would.
    Last write wins; there is no version check.
    """

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self._rows: Dict[str, Dict[str, Any]] = {}
        self.load(records or [])

    def load(self, records: List[Dict[str, Any]]) -> None:
        """Replace every row with the given records (ids kept when present)"""
        self._rows.clear()
        for record in records:
            row = copy.deepcopy(record)
            row.setdefault("id", str(uuid.uuid4()))
            self._rows[str(row["id"])] = row

    async def select_all(self) -> List[Clinic]:
        return [clinic_from_record(row) for row in self._rows.values()]

    async def select_by_id(self, clinic_id: str) -> Clinic:
        row = self._rows.get(clinic_id)
        if row is None:
            raise ClinicNotFoundError(clinic_id)
        return clinic_from_record(row)

    async def insert(self, fields: Dict[str, Any]) -> Clinic:
        row = copy.deepcopy(fields)
        row["id"] = str(uuid.uuid4())
        row["created_at"] = row["updated_at"] = _now()
        # Normalize on the way in so the stored row has the full shape
        clinic = clinic_from_record(row)
        self._rows[clinic.id] = clinic_to_record(clinic)
        logger.info("Inserted clinic %s (%s)", clinic.id, clinic.name)
        return clinic

    async def update(self, clinic_id: str, changes: Dict[str, Any]) -> Clinic:
        row = self._rows.get(clinic_id)
        if row is None:
            raise ClinicNotFoundError(clinic_id)
        merged = {**row, **copy.deepcopy(changes), "id": clinic_id, "updated_at": _now()}
        clinic = clinic_from_record(merged)
        self._rows[clinic_id] = clinic_to_record(clinic)
        return clinic

    async def delete(self, clinic_id: str) -> None:
        if self._rows.pop(clinic_id, None) is None:
            raise ClinicNotFoundError(clinic_id)
        logger.info("Deleted clinic %s", clinic_id)
