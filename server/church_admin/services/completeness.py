from __future__ import annotations

from typing import Any

from church_admin.core.errors import IncompleteDataError
from church_admin.models.person import Person

# Fields a person must have before being promoted or linked as a ministry leader.
REQUIRED_LEADER_FIELDS: tuple[str, ...] = (
    "first_names",
    "last_names",
    "national_id",
    "email",
    "phone",
    "gender",
    "birth_date",
    "address",
)


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() == ""
    return value is None


def missing_leader_fields(person: Person | None) -> list[str]:
    if person is None:
        return list(REQUIRED_LEADER_FIELDS)
    return [field for field in REQUIRED_LEADER_FIELDS if _is_blank(getattr(person, field, None))]


def display_name(person: Person | None, fallback: str | None = None) -> str:
    if person is not None:
        first = (person.first_names or "").strip()
        last = (person.last_names or "").strip()
        if first or last:
            return " ".join(filter(None, [first, last]))
    return fallback or "Unknown"


def ensure_person_complete(person: Person) -> None:
    missing = missing_leader_fields(person)
    if missing:
        raise IncompleteDataError(
            "The person must have all required data before being given a role",
            items=[{"person_id": person.id, "full_name": display_name(person), "missing_fields": missing}],
        )
