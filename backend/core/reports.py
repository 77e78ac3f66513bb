"""Dashboard numbers: headline stats, per-field distributions and the grade mapping report."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from backend.core.models import ComputedStudentRecord, Grade, StoredStudent, StudentStatus

DISTRIBUTION_FIELDS = ("math_units", "english_units", "specialization1", "specialization2")
UNITS_SUFFIX = 'יח"ל'

# report order, senior grade first
MAPPING_GRADES = (Grade.TWELFTH, Grade.ELEVENTH, Grade.TENTH, Grade.NINTH)


def _records(students: Sequence) -> List[ComputedStudentRecord]:
    return [s.record if isinstance(s, StoredStudent) else s for s in students]


def _pct(part: int, whole: int, digits: int) -> str:
    if whole <= 0:
        return "0%"
    return f"{part / whole * 100:.{digits}f}%"


def dashboard_stats(students: Sequence) -> Dict[str, int]:
    records = _records(students)
    grade12 = [r for r in records if r.grade == Grade.TWELFTH]
    return {
        "total": len(records),
        "eligible_12": sum(1 for r in grade12 if r.status == StudentStatus.ELIGIBLE),
        "math5_12": sum(1 for r in grade12 if r.math_units == 5),
        "eng5_12": sum(1 for r in grade12 if r.english_units == 5),
        "elite_tech_12": sum(1 for r in grade12 if r.elite_tech),
    }


def distribution(
    students: Sequence,
    field: str,
    grade: Optional[Grade] = None,
    suffix: str = "",
) -> List[Dict[str, Any]]:
    if field not in DISTRIBUTION_FIELDS:
        raise ValueError(f"Unsupported distribution field: {field}")

    records = _records(students)
    if grade is not None:
        records = [r for r in records if r.grade == grade]

    counts: Dict[str, int] = {}
    for r in records:
        val = getattr(r, field)
        if isinstance(val, Enum):
            val = val.value
        if val is None or str(val) == "":
            continue
        label = f"{val} {suffix}".strip() if isinstance(val, int) else str(val)
        counts[label] = counts.get(label, 0) + 1
    return [{"name": k, "value": v} for k, v in counts.items()]


def mapping_report(students: Sequence) -> Dict[str, Any]:
    records = _records(students)

    grades: List[Dict[str, Any]] = []
    for g in MAPPING_GRADES:
        in_grade = [r for r in records if r.grade == g]
        math5 = sum(1 for r in in_grade if r.math_units == 5)
        grades.append({
            "grade": g.value,
            "total": len(in_grade),
            "eligible": sum(1 for r in in_grade if r.status == StudentStatus.ELIGIBLE),
            "math5": math5,
            "eng5": sum(1 for r in in_grade if r.english_units == 5),
            "math5_pct": _pct(math5, len(in_grade), 1),
        })

    eligible = sum(1 for r in records if r.status == StudentStatus.ELIGIBLE)
    summary = {
        "total": len(records),
        "math5": sum(1 for r in records if r.math_units == 5),
        "eligible": eligible,
        "eligible_pct": _pct(eligible, len(records), 0),
    }
    return {"grades": grades, "summary": summary}
