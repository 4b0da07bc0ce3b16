# Clinic form validation - reports every violated rule, tagged by field
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from hours import is_valid_schedule
from models import WEEKDAYS

PHONE_PATTERN = re.compile(r"^[+]?[\d\s\-()]{7,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
POSTCODE_PATTERN = re.compile(r"^\d{5}$")

_URL = TypeAdapter(HttpUrl)

_REQUIRED_MESSAGES = {
    "name": "Clinic name is required",
    "city": "City is required",
    "state": "State is required",
}

_URL_MESSAGES = {
    "website": "Invalid website URL",
    "facebook_url": "Invalid Facebook URL",
    "instagram_url": "Invalid Instagram URL",
}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class WeeklyHoursForm(BaseModel):
    """Seven weekday schedule strings"""
    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    monday: Optional[str] = None
    tuesday: Optional[str] = None
    wednesday: Optional[str] = None
    thursday: Optional[str] = None
    friday: Optional[str] = None
    saturday: Optional[str] = None
    sunday: Optional[str] = None

    @field_validator(*WEEKDAYS)
    @classmethod
    def check_schedule(cls, v: Optional[str], info) -> Optional[str]:
        day = info.field_name.capitalize()
        if not v:
            raise PydanticCustomError("hours_missing", "{day} hours are required", {"day": day})
        if not is_valid_schedule(v):
            raise PydanticCustomError(
                "hours_format",
                "Invalid format for {day}: use Closed, 24 Hours or HH:MM - HH:MM",
                {"day": day},
            )
        return v


class ClinicForm(BaseModel):
    """Editable clinic fields as submitted by the admin form"""
    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True, extra="ignore")

    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    street: Optional[str] = None
    postcode: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    emergency: bool = False
    emergency_hours: Optional[str] = None
    emergency_details: Optional[str] = None
    hours: WeeklyHoursForm = Field(default_factory=dict)
    animals_treated: List[str] = []
    specializations: List[str] = []
    services_offered: List[str] = []

    @field_validator("name", "city", "state")
    @classmethod
    def check_required(cls, v: Optional[str], info) -> str:
        if not v:
            raise PydanticCustomError("required", _REQUIRED_MESSAGES[info.field_name])
        return v

    @field_validator(
        "street", "postcode", "phone", "email", "website", "facebook_url", "instagram_url",
        mode="before",
    )
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not PHONE_PATTERN.match(v):
            raise PydanticCustomError("phone", "Invalid phone number format")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise PydanticCustomError("email", "Invalid email format")
        return v

    @field_validator("postcode")
    @classmethod
    def check_postcode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not POSTCODE_PATTERN.match(v):
            raise PydanticCustomError("postcode", "Postcode must be 5 digits")
        return v

    @field_validator("website", "facebook_url", "instagram_url")
    @classmethod
    def check_url(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        try:
            _URL.validate_python(v)
        except ValidationError:
            raise PydanticCustomError("url", _URL_MESSAGES[info.field_name]) from None
        return v

    @field_validator("hours", mode="before")
    @classmethod
    def hours_mapping(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, WeeklyHoursForm)) else {}


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if not isinstance(part, int)]
    return ".".join(parts) if parts else "form"


def validate_clinic(values: Dict[str, Any]) -> List[FieldError]:
    """Validate a draft and return every problem; an empty list means it can be saved"""
    try:
        ClinicForm.model_validate(values or {})
    except ValidationError as exc:
        return [FieldError(_field_name(err["loc"]), err["msg"]) for err in exc.errors()]
    return []


def validate_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match((phone or "").strip()))


def errors_by_field(errors: List[FieldError]) -> Dict[str, str]:
    """First message per field, for inline form display"""
    lookup: Dict[str, str] = {}
    for error in errors:
        lookup.setdefault(error.field, error.message)
    return lookup
