# Backend main entry point - clinic directory API
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from config import get_frontend_url, is_demo_mode
from hours import format_business_hours, get_clinic_status, get_today_hours
from logging_config import setup_logging
from logic import (
    ClinicValidationError,
    PermissionDeniedError,
    archive_clinic,
    bulk_delete_clinics,
    create_clinic,
    delete_clinic,
    get_clinic,
    list_clinics,
    set_verification_status,
    update_clinic,
)
from models import Clinic, FilterState, clinic_to_record
from permissions import Identity
from search import (
    SORT_KEYS,
    apply_search_boosts,
    get_completeness_score,
    get_filter_options,
    get_suggested_filters,
    search_clinics,
    sort_clinics,
)
from seed import seed_data
from store import ClinicNotFoundError, InMemoryClinicStore, StoreError
from validation import validate_clinic

setup_logging()

store = InMemoryClinicStore()
seed_data(store)

app = FastAPI(title="Vet Clinic Directory API")

# Configure CORS - allow local dev and the deployed frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if get_frontend_url():
    _allowed_origins.append(get_frontend_url())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class ClinicPayload(BaseModel):
    """Editable clinic fields; everything optional so PATCH can send a subset"""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    emergency: Optional[bool] = None
    emergency_hours: Optional[str] = None
    emergency_details: Optional[str] = None
    hours: Optional[Dict[str, str]] = None
    animals_treated: Optional[List[str]] = None
    specializations: Optional[List[str]] = None
    services_offered: Optional[List[str]] = None


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[FieldErrorResponse]


class VerificationRequest(BaseModel):
    status: str


class BulkDeleteRequest(BaseModel):
    ids: List[str]


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Identity]:
    """Identity comes from the auth layer in front of this API"""
    if not x_user_id or not x_user_role:
        return None
    return Identity.for_role(x_user_id, x_user_role)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, ClinicNotFoundError):
        return HTTPException(status_code=404, detail="Clinic not found")
    if isinstance(exc, ClinicValidationError):
        return HTTPException(
            status_code=422,
            detail=[{"field": e.field, "message": e.message} for e in exc.errors],
        )
    return HTTPException(status_code=502, detail=f"Clinic store unavailable: {exc}")


def _instant(at: Optional[datetime]) -> datetime:
    return at if at is not None else datetime.now(timezone.utc)


def _listing_row(clinic: Clinic, instant: datetime) -> Dict[str, Any]:
    status = get_clinic_status(clinic, instant)
    row = clinic_to_record(clinic)
    row["status"] = status.status
    row["statusMessage"] = status.message
    row["todayHours"] = get_today_hours(clinic.hours, instant)
    return row


async def _public_clinics() -> List[Clinic]:
    try:
        clinics = await store.select_all()
    except StoreError as exc:
        raise _http_error(exc)
    return [c for c in clinics if not c.is_archived]


@app.get("/")
def read_root():
    return {"message": "Vet Clinic Directory API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/clinics")
async def get_clinics(
    q: str = "",
    state: str = "",
    city: str = "",
    emergency: Optional[bool] = None,
    services: List[str] = Query(default=[]),
    animals: List[str] = Query(default=[]),
    specializations: List[str] = Query(default=[]),
    sort: Optional[str] = None,
    order: str = "asc",
    at: Optional[datetime] = None,
):
    """Public search: filter, then explicit sort or relevance boosting"""
    if sort is not None and sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {', '.join(SORT_KEYS)}")

    filters = FilterState(
        query=q,
        state=state,
        city=city,
        emergency=emergency,
        services=services,
        animals=animals,
        specializations=specializations,
    )
    results = search_clinics(await _public_clinics(), filters)
    if sort:
        results = sort_clinics(results, sort, order)
    else:
        results = apply_search_boosts(results, q)

    instant = _instant(at)
    return [_listing_row(c, instant) for c in results]


@app.get("/clinics/filters")
async def get_clinic_filters(state: str = "", q: str = ""):
    """Filter panel options, plus suggestions when a query is typed"""
    clinics = await _public_clinics()
    options = get_filter_options(clinics, state)
    options["suggestions"] = get_suggested_filters(q, clinics)
    return options


@app.post("/clinics/validate", response_model=ValidationResponse)
def validate_clinic_draft(payload: ClinicPayload):
    """Run form validation without saving"""
    errors = validate_clinic(payload.model_dump())
    return ValidationResponse(
        valid=not errors,
        errors=[FieldErrorResponse(field=e.field, message=e.message) for e in errors],
    )


@app.get("/clinics/{clinic_id}")
async def get_clinic_detail(clinic_id: str, at: Optional[datetime] = None):
    try:
        clinic = await store.select_by_id(clinic_id)
    except StoreError as exc:
        raise _http_error(exc)
    if clinic.is_archived:
        raise HTTPException(status_code=404, detail="Clinic not found")

    instant = _instant(at)
    row = _listing_row(clinic, instant)
    row["weeklyHours"] = format_business_hours(clinic.hours, instant)
    return row


@app.get("/admin/clinics")
async def admin_list_clinics(identity: Optional[Identity] = Depends(get_identity)):
    try:
        clinics = await list_clinics(store, identity)
    except (PermissionDeniedError, StoreError) as exc:
        raise _http_error(exc)
    rows = []
    for clinic in sort_clinics(clinics, "name"):
        row = clinic_to_record(clinic)
        row["completenessScore"] = get_completeness_score(clinic)
        rows.append(row)
    return rows


@app.post("/admin/clinics", status_code=201)
async def admin_create_clinic(payload: ClinicPayload, identity: Optional[Identity] = Depends(get_identity)):
    try:
        clinic = await create_clinic(store, identity, payload.model_dump(exclude_none=True))
    except (PermissionDeniedError, ClinicValidationError, StoreError) as exc:
        raise _http_error(exc)
    return clinic_to_record(clinic)


@app.post("/admin/clinics/bulk-delete")
async def admin_bulk_delete(payload: BulkDeleteRequest, identity: Optional[Identity] = Depends(get_identity)):
    """Delete in order; the response says where it stopped"""
    try:
        result = await bulk_delete_clinics(store, identity, payload.ids)
    except PermissionDeniedError as exc:
        raise _http_error(exc)
    return {
        "success": result.success,
        "total": result.total,
        "deleted": result.deleted,
        "failedId": result.failed_id,
        "error": result.error,
    }


@app.get("/admin/clinics/{clinic_id}")
async def admin_get_clinic(clinic_id: str, identity: Optional[Identity] = Depends(get_identity)):
    try:
        clinic = await get_clinic(store, identity, clinic_id)
    except (PermissionDeniedError, StoreError) as exc:
        raise _http_error(exc)
    return clinic_to_record(clinic)


@app.patch("/admin/clinics/{clinic_id}")
async def admin_update_clinic(
    clinic_id: str,
    payload: ClinicPayload,
    identity: Optional[Identity] = Depends(get_identity),
):
    try:
        clinic = await update_clinic(store, identity, clinic_id, payload.model_dump(exclude_unset=True))
    except (PermissionDeniedError, ClinicValidationError, StoreError) as exc:
        raise _http_error(exc)
    return clinic_to_record(clinic)


@app.delete("/admin/clinics/{clinic_id}")
async def admin_delete_clinic(clinic_id: str, identity: Optional[Identity] = Depends(get_identity)):
    try:
        await delete_clinic(store, identity, clinic_id)
    except (PermissionDeniedError, StoreError) as exc:
        raise _http_error(exc)
    return {"status": "deleted", "id": clinic_id}


@app.post("/admin/clinics/{clinic_id}/archive")
async def admin_archive_clinic(clinic_id: str, identity: Optional[Identity] = Depends(get_identity)):
    try:
        clinic = await archive_clinic(store, identity, clinic_id)
    except (PermissionDeniedError, StoreError) as exc:
        raise _http_error(exc)
    return clinic_to_record(clinic)


@app.post("/admin/clinics/{clinic_id}/verification")
async def admin_set_verification(
    clinic_id: str,
    payload: VerificationRequest,
    identity: Optional[Identity] = Depends(get_identity),
):
    try:
        clinic = await set_verification_status(store, identity, clinic_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (PermissionDeniedError, StoreError) as exc:
        raise _http_error(exc)
    return clinic_to_record(clinic)


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """Restore the sample clinics. Only available when DEMO_MODE=true."""
    if not is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data(store)
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
