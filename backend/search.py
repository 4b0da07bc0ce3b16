# Search, filtering and ranking over the clinic collection
from __future__ import annotations

import locale
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

from models import Clinic, FilterState

SORT_KEYS = ("name", "city", "state", "emergency")

# Every veterinary clinic is assumed to vaccinate
UNIVERSAL_SERVICES = {"vaccination"}


def _contains(haystack: str, needle: str) -> bool:
    return needle in haystack.lower()


def _labels_match(selected: str, labels: Iterable[str]) -> bool:
    """Case-insensitive substring match in either direction"""
    wanted = selected.strip().lower()
    if not wanted:
        return True
    for label in labels:
        have = label.lower()
        if wanted in have or have in wanted:
            return True
    return False


def _active(values: Optional[Iterable[str]]) -> List[str]:
    return [v for v in (values or []) if isinstance(v, str) and v.strip()]


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def matches_query(clinic: Clinic, query: str) -> bool:
    """Free-text match against name, address and every taxonomy label"""
    needle = _text(query).lower()
    if not needle:
        return True
    fields = [clinic.name, clinic.city, clinic.state, clinic.street]
    if any(_contains(value, needle) for value in fields):
        return True
    labels = clinic.animals_treated + clinic.specializations + clinic.services_offered
    return any(_contains(label, needle) for label in labels)


def _matches_services(clinic: Clinic, services: List[str]) -> bool:
    labels = clinic.services_offered + clinic.specializations
    for service in services:
        if service.strip().lower() in UNIVERSAL_SERVICES:
            return True
        if _labels_match(service, labels):
            return True
    return False


def _matches_any(selected: List[str], labels: List[str]) -> bool:
    return any(_labels_match(value, labels) for value in selected)


def search_clinics(clinics: List[Clinic], filters: Optional[FilterState]) -> List[Clinic]:
    """
    Filter clinics against a FilterState.
    Categories combine with AND; values inside one category combine with OR.
    Empty or unknown filter values are no constraint.
    """
    if filters is None:
        return list(clinics)

    services = _active(filters.services)
    animals = _active(filters.animals)
    specializations = _active(filters.specializations)
    state = _text(filters.state)
    city = _text(filters.city)

    results = []
    for clinic in clinics:
        if not matches_query(clinic, filters.query):
            continue
        if state and clinic.state != state:
            continue
        if city and clinic.city != city:
            continue
        if filters.emergency is True and clinic.emergency is not True:
            continue
        if services and not _matches_services(clinic, services):
            continue
        if animals and not _matches_any(animals, clinic.animals_treated):
            continue
        if specializations and not _matches_any(specializations, clinic.specializations):
            continue
        results.append(clinic)
    return results


def _collate(value: str) -> str:
    try:
        return locale.strxfrm(value.casefold())
    except (ValueError, OSError):
        return value.casefold()


_SORT_VALUES: Dict[str, Callable[[Clinic], object]] = {
    "name": lambda c: _collate(c.name),
    "city": lambda c: _collate(c.city),
    "state": lambda c: _collate(c.state),
    "emergency": lambda c: 1 if c.emergency else 0,
}


def sort_clinics(clinics: List[Clinic], key: str = "name", direction: str = "asc") -> List[Clinic]:
    """Stable sort into a new list; unknown keys keep the input order"""
    sort_value = _SORT_VALUES.get(_text(key).lower())
    if sort_value is None:
        return list(clinics)
    descending = _text(direction).lower() == "desc"
    # sorted() keeps equal items in input order even with reverse=True
    return sorted(clinics, key=sort_value, reverse=descending)


def get_search_priority(clinic: Clinic) -> int:
    """Ranking heuristic favoring emergency care and complete listings"""
    priority = 0
    if clinic.emergency:
        priority += 100
    priority += 10 * len(clinic.specializations)
    priority += 5 * len(clinic.services_offered)
    if clinic.phone:
        priority += 20
    if clinic.website:
        priority += 15
    if clinic.email:
        priority += 10
    return priority


def apply_search_boosts(clinics: List[Clinic], query: Optional[str] = None) -> List[Clinic]:
    """Name matches first, then each group by descending priority, ties by name"""
    needle = _text(query).lower()

    def rank(clinic: Clinic):
        name_match = bool(needle) and needle in clinic.name.lower()
        return (0 if name_match else 1, -get_search_priority(clinic), _collate(clinic.name))

    return sorted(clinics, key=rank)


def get_filter_options(clinics: List[Clinic], state: str = "") -> Dict[str, List[str]]:
    """Distinct values for the filter panel; cities narrow to the selected state"""
    states = sorted({c.state for c in clinics if c.state}, key=_collate)
    city_pool = [c for c in clinics if c.state == state] if state else clinics
    cities = sorted({c.city for c in city_pool if c.city}, key=_collate)
    animals = sorted({a for c in clinics for a in c.animals_treated}, key=_collate)
    services = sorted(
        {s for c in clinics for s in c.services_offered + c.specializations},
        key=_collate,
    )
    return {"states": states, "cities": cities, "animals": animals, "services": services}


def update_filters(current: FilterState, **changes) -> FilterState:
    """
    Partial update; picking a different state clears every other selection.
    Unknown field names are dropped, like any other unknown filter input.
    """
    changes = {k: v for k, v in changes.items() if k in FilterState.__dataclass_fields__}

    new_state = changes.get("state")
    if new_state is not None and new_state != current.state:
        return FilterState(query=current.query, state=new_state)
    return replace(current, **changes)


def get_suggested_filters(query: str, clinics: List[Clinic]) -> Dict[str, List[str]]:
    """Filter values that contain the typed query, for search-as-you-type hints"""
    needle = _text(query).lower()
    suggestions: Dict[str, List[str]] = {"states": [], "cities": [], "services": [], "animals": []}
    if not needle:
        return suggestions

    def collect(values: Iterable[str], limit: int) -> List[str]:
        found: List[str] = []
        for value in values:
            if needle in value.lower() and value not in found:
                found.append(value)
        return found[:limit]

    suggestions["states"] = collect((c.state for c in clinics), 3)
    suggestions["cities"] = collect((c.city for c in clinics), 5)
    suggestions["services"] = collect((s for c in clinics for s in c.services_offered), 5)
    suggestions["animals"] = collect((a for c in clinics for a in c.animals_treated), 5)
    return suggestions


def get_completeness_score(clinic: Clinic) -> int:
    """Percentage of profile checks filled in"""
    checks = [
        bool(clinic.name),
        bool(clinic.street),
        bool(clinic.city),
        bool(clinic.state),
        bool(clinic.phone),
        bool(clinic.email),
        bool(clinic.website),
        any(value.lower() != "closed" for value in clinic.hours.values()),
        bool(clinic.animals_treated),
        bool(clinic.specializations),
        bool(clinic.services_offered),
    ]
    return round(sum(checks) / len(checks) * 100)
