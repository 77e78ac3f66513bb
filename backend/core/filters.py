"""Student table: filter normalization, filtering and column sorting."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from backend.core.models import (
    ComputedStudentRecord,
    Grade,
    Specialization1,
    Specialization2,
    StoredStudent,
    UNIT_CODES,
)

ALL = "All"

SORT_KEYS = (
    "student_id",
    "name",
    "class",
    "math_units",
    "english_units",
    "specialization1",
    "specialization2",
    "status",
)
NUMERIC_SORT_KEYS = ("math_units", "english_units")


@dataclass(frozen=True)
class StudentFilters:
    grade: Optional[Grade] = None
    search: str = ""
    math_units: Optional[int] = None
    english_units: Optional[int] = None
    specialization1: Optional[Specialization1] = None
    specialization2: Optional[Specialization2] = None


def _is_all(value: Any) -> bool:
    return value is None or str(value).strip() in ("", ALL)


def _as_enum(enum_cls, value: Any):
    if _is_all(value):
        return None
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        return None


def _as_units(value: Any) -> Optional[int]:
    if _is_all(value):
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n in UNIT_CODES else None


def normalize_filters(raw: Dict[str, Any]) -> StudentFilters:
    return StudentFilters(
        grade=_as_enum(Grade, raw.get("grade")),
        search=(raw.get("search") or "").strip(),
        math_units=_as_units(raw.get("math_units")),
        english_units=_as_units(raw.get("english_units")),
        # "" is a real specialization value but filtering on it means "All"
        specialization1=_as_enum(Specialization1, raw.get("specialization1")),
        specialization2=_as_enum(Specialization2, raw.get("specialization2")),
    )


def any_filter_on(filters: StudentFilters) -> bool:
    return filters != StudentFilters()


def _record(s) -> ComputedStudentRecord:
    return s.record if isinstance(s, StoredStudent) else s


def matches(record: ComputedStudentRecord, filters: StudentFilters) -> bool:
    if filters.grade is not None and record.grade != filters.grade:
        return False
    term = filters.search.strip()
    if term and term not in record.name and term not in (record.student_id or ""):
        return False
    if filters.math_units is not None and (record.math_units or 0) != filters.math_units:
        return False
    if filters.english_units is not None and (record.english_units or 0) != filters.english_units:
        return False
    if filters.specialization1 is not None and record.specialization1 != filters.specialization1:
        return False
    if filters.specialization2 is not None and record.specialization2 != filters.specialization2:
        return False
    return True


def filter_students(students: Sequence, filters: StudentFilters) -> List:
    """Works on StoredStudent or bare ComputedStudentRecord lists."""
    return [s for s in students if matches(_record(s), filters)]


def natural_key(value: Any) -> tuple:
    """Case-insensitive order with digit runs compared as numbers ("2" < "10")."""
    parts = re.split(r"(\d+)", str(value if value is not None else "").casefold())
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts if p != "")


_SORT_VALUES: Dict[str, Callable[[ComputedStudentRecord], Any]] = {
    "student_id": lambda r: r.student_id or "",
    "name": lambda r: r.name,
    "class": lambda r: f"{r.grade.value}{r.class_num}",
    "math_units": lambda r: r.math_units or 0,
    "english_units": lambda r: r.english_units or 0,
    "specialization1": lambda r: r.specialization1.value,
    "specialization2": lambda r: r.specialization2.value,
    "status": lambda r: r.status.value,
}


def sort_students(students: Sequence, key: str, direction: str = "asc") -> List:
    if key not in _SORT_VALUES:
        raise ValueError(f"Unsupported sort key: {key}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {direction}")

    value_of = _SORT_VALUES[key]
    if key in NUMERIC_SORT_KEYS:
        sort_key = lambda s: value_of(_record(s))  # noqa: E731
    else:
        sort_key = lambda s: natural_key(value_of(_record(s)))  # noqa: E731
    return sorted(students, key=sort_key, reverse=(direction == "desc"))
