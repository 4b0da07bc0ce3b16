# Admin clinic operations - permission-checked CRUD over a ClinicStore
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models import EDITABLE_FIELDS, VERIFICATION_STATUSES, Clinic, editable_values
from permissions import (
    Identity,
    can_create_clinics,
    can_delete_clinics,
    can_perform_action,
    can_view_clinics,
    get_accessible_clinics,
)
from store import ClinicStore, StoreError
from validation import FieldError, validate_clinic

logger = logging.getLogger(__name__)


class PermissionDeniedError(Exception):
    """Identity is not allowed to perform the action"""


class ClinicValidationError(Exception):
    """Clinic fields failed validation; carries every field error"""

    def __init__(self, errors: List[FieldError]):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors


@dataclass
class BulkDeleteResult:
    total: int
    deleted: List[str] = field(default_factory=list)
    failed_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failed_id is None


def _editable_only(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}


def _require(allowed: bool, message: str) -> None:
    if not allowed:
        raise PermissionDeniedError(message)


async def list_clinics(store: ClinicStore, identity: Optional[Identity]) -> List[Clinic]:
    """Admin list: every clinic the identity can see, archived included"""
    _require(can_view_clinics(identity), "You do not have permission to view clinics")
    return get_accessible_clinics(identity, await store.select_all())


async def get_clinic(store: ClinicStore, identity: Optional[Identity], clinic_id: str) -> Clinic:
    clinic = await store.select_by_id(clinic_id)
    _require(can_perform_action(identity, "view", clinic), "You do not have permission to view this clinic")
    return clinic


async def create_clinic(store: ClinicStore, identity: Optional[Identity], fields: Dict[str, Any]) -> Clinic:
    """Validate and insert a new clinic; new listings start as pending"""
    _require(can_create_clinics(identity), "You do not have permission to create clinics")
    values = _editable_only(fields)
    errors = validate_clinic(values)
    if errors:
        raise ClinicValidationError(errors)

    values["verification_status"] = "pending"
    if identity is not None and identity.role == "clinic_owner":
        values["owner_id"] = identity.user_id
    clinic = await store.insert(values)
    logger.info("Clinic %s created by %s", clinic.id, identity.user_id if identity else "-")
    return clinic


async def update_clinic(
    store: ClinicStore,
    identity: Optional[Identity],
    clinic_id: str,
    changes: Dict[str, Any],
) -> Clinic:
    """Validate the merged result, then write only editable fields"""
    current = await store.select_by_id(clinic_id)
    _require(can_perform_action(identity, "edit", current), "You do not have permission to edit this clinic")

    changes = _editable_only(changes)
    merged = {**editable_values(current), **changes}
    errors = validate_clinic(merged)
    if errors:
        raise ClinicValidationError(errors)

    clinic = await store.update(clinic_id, changes)
    logger.info("Clinic %s updated (%s)", clinic_id, ", ".join(sorted(changes)) or "no fields")
    return clinic


async def delete_clinic(store: ClinicStore, identity: Optional[Identity], clinic_id: str) -> None:
    """Hard delete. Verifies the clinic exists first so not-found is reported distinctly."""
    _require(can_delete_clinics(identity), "You do not have permission to delete clinics")
    await store.select_by_id(clinic_id)
    await store.delete(clinic_id)
    logger.info("Clinic %s deleted", clinic_id)


async def archive_clinic(store: ClinicStore, identity: Optional[Identity], clinic_id: str) -> Clinic:
    """Soft delete: the row stays, hidden from public listings"""
    current = await store.select_by_id(clinic_id)
    _require(can_perform_action(identity, "archive", current), "You do not have permission to archive this clinic")
    clinic = await store.update(clinic_id, {"verification_status": "archived"})
    logger.info("Clinic %s archived", clinic_id)
    return clinic


async def set_verification_status(
    store: ClinicStore,
    identity: Optional[Identity],
    clinic_id: str,
    status: str,
) -> Clinic:
    if status not in VERIFICATION_STATUSES:
        raise ValueError(f"Unknown verification status: {status}")
    current = await store.select_by_id(clinic_id)
    action = "archive" if status == "archived" else "verify"
    _require(can_perform_action(identity, action, current), "You do not have permission to change verification status")
    return await store.update(clinic_id, {"verification_status": status})


async def bulk_delete_clinics(
    store: ClinicStore,
    identity: Optional[Identity],
    clinic_ids: List[str],
) -> BulkDeleteResult:
    """Delete in order, stopping at the first failure; earlier deletes are not rolled back"""
    _require(can_delete_clinics(identity), "You do not have permission to delete clinics")
    result = BulkDeleteResult(total=len(clinic_ids))
    for clinic_id in clinic_ids:
        try:
            await store.delete(clinic_id)
        except StoreError as exc:
            result.failed_id = clinic_id
            result.error = str(exc)
            logger.warning("Bulk delete stopped at %s after %d of %d: %s",
                           clinic_id, len(result.deleted), result.total, exc)
            break
        result.deleted.append(clinic_id)
    return result
