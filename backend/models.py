# Clinic data models and the single store-boundary deserialization
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import re

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

VERIFICATION_STATUSES = ("pending", "verified", "rejected", "archived")

EDITABLE_FIELDS = (
    "name",
    "street",
    "city",
    "state",
    "postcode",
    "phone",
    "email",
    "website",
    "facebook_url",
    "instagram_url",
    "emergency",
    "emergency_hours",
    "emergency_details",
    "hours",
    "animals_treated",
    "specializations",
    "services_offered",
)

_STRING_FIELDS = (
    "name",
    "street",
    "city",
    "state",
    "postcode",
    "phone",
    "email",
    "website",
    "facebook_url",
    "instagram_url",
    "emergency_hours",
    "emergency_details",
)

_LABEL_FIELDS = ("animals_treated", "specializations", "services_offered")

# Nested record shape used by the public pages: section -> {record key: field}
_NESTED_SECTIONS = {
    "address": {"street": "street", "city": "city", "state": "state", "postcode": "postcode"},
    "contact": {"phone": "phone", "email": "email", "website": "website"},
    "social": {"facebook": "facebook_url", "instagram": "instagram_url"},
    "services": {
        "emergency": "emergency",
        "emergency_hours": "emergency_hours",
        "emergency_details": "emergency_details",
        "animals_treated": "animals_treated",
        "specializations": "specializations",
        "services_offered": "services_offered",
    },
}


def default_hours() -> Dict[str, str]:
    return {day: "Closed" for day in WEEKDAYS}


@dataclass
class Clinic:
    """Veterinary clinic listing"""
    id: str
    name: str
    street: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    facebook_url: str = ""
    instagram_url: str = ""
    emergency: bool = False
    emergency_hours: str = ""
    emergency_details: str = ""
    hours: Dict[str, str] = field(default_factory=default_hours)
    animals_treated: List[str] = field(default_factory=list)
    specializations: List[str] = field(default_factory=list)
    services_offered: List[str] = field(default_factory=list)
    verification_status: str = "pending"
    owner_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_archived(self) -> bool:
        return self.verification_status == "archived"


@dataclass
class FilterState:
    """Search and filter selections from the listing pages"""
    query: str = ""
    state: str = ""
    city: str = ""
    emergency: Optional[bool] = None
    services: List[str] = field(default_factory=list)
    animals: List[str] = field(default_factory=list)
    specializations: List[str] = field(default_factory=list)


def normalize_text(value: Any) -> str:
    """Coerce to str, trim, collapse runs of whitespace"""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def normalize_labels(values: Any) -> List[str]:
    """Clean a label list: drop blanks, de-duplicate case-insensitively, keep first spelling"""
    if values is None:
        return []
    if isinstance(values, str):
        values = [part for part in values.split(",")]
    labels: List[str] = []
    seen = set()
    for value in values:
        label = normalize_text(value)
        key = label.lower()
        if label and key not in seen:
            seen.add(key)
            labels.append(label)
    return labels


def normalize_hours(hours: Any) -> Dict[str, str]:
    """Exactly seven weekday keys; missing or blank days read as Closed"""
    result = default_hours()
    if not isinstance(hours, dict):
        return result
    for day in WEEKDAYS:
        value = normalize_text(hours.get(day))
        if value:
            result[day] = value
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _flatten(record: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested address/contact/social/services sections into one flat dict"""
    flat = dict(record)
    for section, mapping in _NESTED_SECTIONS.items():
        nested = record.get(section)
        if not isinstance(nested, dict):
            continue
        for key, target in mapping.items():
            if key in nested and flat.get(target) in (None, "", []):
                flat[target] = nested[key]
    return flat


def clinic_from_record(record: Dict[str, Any]) -> Clinic:
    """
    Build a fully-populated Clinic from a loose store record.
    Accepts flat rows and the nested address/contact/services/social shape.
    Missing fields are defaulted here so nothing downstream has to re-check them.
    """
    flat = _flatten(record or {})
    values: Dict[str, Any] = {name: normalize_text(flat.get(name)) for name in _STRING_FIELDS}
    for name in _LABEL_FIELDS:
        values[name] = normalize_labels(flat.get(name))

    status = normalize_text(flat.get("verification_status")).lower()
    if status not in VERIFICATION_STATUSES:
        status = "pending"

    owner_id = flat.get("owner_id") or flat.get("user_id")
    return Clinic(
        id=normalize_text(flat.get("id")),
        emergency=_as_bool(flat.get("emergency")),
        hours=normalize_hours(flat.get("hours")),
        verification_status=status,
        owner_id=str(owner_id) if owner_id else None,
        created_at=normalize_text(flat.get("created_at")),
        updated_at=normalize_text(flat.get("updated_at")),
        **values,
    )


def clinic_to_record(clinic: Clinic) -> Dict[str, Any]:
    """Flat row for the store and JSON responses"""
    return {
        "id": clinic.id,
        "name": clinic.name,
        "street": clinic.street,
        "city": clinic.city,
        "state": clinic.state,
        "postcode": clinic.postcode,
        "phone": clinic.phone,
        "email": clinic.email,
        "website": clinic.website,
        "facebook_url": clinic.facebook_url,
        "instagram_url": clinic.instagram_url,
        "emergency": clinic.emergency,
        "emergency_hours": clinic.emergency_hours,
        "emergency_details": clinic.emergency_details,
        "hours": dict(clinic.hours),
        "animals_treated": list(clinic.animals_treated),
        "specializations": list(clinic.specializations),
        "services_offered": list(clinic.services_offered),
        "verification_status": clinic.verification_status,
        "owner_id": clinic.owner_id,
        "created_at": clinic.created_at,
        "updated_at": clinic.updated_at,
    }


def editable_values(clinic: Clinic) -> Dict[str, Any]:
    """Copy of the fields an edit form works on"""
    record = clinic_to_record(clinic)
    return {name: record[name] for name in EDITABLE_FIELDS}
