"""Spreadsheet -> RawEnrollmentRecord -> ComputedStudentRecord."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional, Union

import pandas as pd

from backend.core.engine import EligibilityEngine
from backend.core.models import (
    ComputedStudentRecord,
    Grade,
    RawEnrollmentRecord,
    Specialization1,
    Specialization2,
    UNIT_CODES,
)

logger = logging.getLogger(__name__)

PARSE_ERROR = "שגיאה בניתוח אקסל"

# spreadsheet header -> record field
COLUMNS = {
    "studentId": "student_id",
    "student_id": "student_id",
    "name": "name",
    "grade": "grade",
    "classNum": "class_num",
    "class_num": "class_num",
    "englishUnits": "english_units",
    "english_units": "english_units",
    "mathUnits": "math_units",
    "math_units": "math_units",
    "specialization1": "specialization1",
    "specialization2": "specialization2",
    "socialUnits": "social_units",
    "social_units": "social_units",
}

Source = Union[str, os.PathLike, BinaryIO]


class SpreadsheetImportError(ValueError):
    pass


@dataclass
class ImportResult:
    students: List[ComputedStudentRecord] = field(default_factory=list)
    skipped: int = 0


def to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def to_num(value: Any) -> int:
    s = to_str(value)
    try:
        n = float(s)
    except ValueError:
        return 0
    return int(n) if math.isfinite(n) else 0


def to_units(value: Any) -> Optional[int]:
    """3/4/5 or None; blanks and anything else are "not assigned"."""
    s = to_str(value)
    if not s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return int(n) if n in UNIT_CODES else None


def to_spec1(value: Any) -> Specialization1:
    s = to_str(value)
    try:
        return Specialization1(s)
    except ValueError:
        return Specialization1.NONE


def to_spec2(value: Any) -> Specialization2:
    s = to_str(value)
    try:
        return Specialization2(s)
    except ValueError:
        return Specialization2.NONE


def read_rows(source: Source, filename: Optional[str] = None) -> List[Dict[str, Any]]:
    """First sheet (or the CSV) as a list of dicts keyed by record field names."""
    name = filename or (str(source) if isinstance(source, (str, os.PathLike)) else "")
    try:
        if name.lower().endswith(".csv"):
            df = pd.read_csv(source, dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(source, sheet_name=0, dtype=object, na_filter=False)
    except Exception as e:
        raise SpreadsheetImportError(f"{PARSE_ERROR}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    df = df.rename(columns=COLUMNS)
    df = df.loc[:, [c for c in df.columns if c in COLUMNS.values()]]
    return df.to_dict(orient="records")


def parse_row(row: Dict[str, Any]) -> Optional[RawEnrollmentRecord]:
    name = to_str(row.get("name"))
    grade = to_str(row.get("grade"))
    class_num = to_str(row.get("class_num"))
    if not (name and grade and class_num):
        return None
    try:
        grade_value = Grade(grade)
    except ValueError:
        return None

    return RawEnrollmentRecord(
        student_id=to_str(row.get("student_id")) or None,
        name=name,
        grade=grade_value,
        class_num=class_num,
        english_units=to_units(row.get("english_units")),
        math_units=to_units(row.get("math_units")),
        specialization1=to_spec1(row.get("specialization1")),
        specialization2=to_spec2(row.get("specialization2")),
        social_units=to_num(row.get("social_units")),
    )


def parse_students(
    source: Source,
    filename: Optional[str] = None,
    engine: Optional[EligibilityEngine] = None,
) -> ImportResult:
    engine = engine or EligibilityEngine()
    result = ImportResult()
    raws: List[RawEnrollmentRecord] = []
    for idx, row in enumerate(read_rows(source, filename)):
        raw = parse_row(row)
        if raw is None:
            logger.debug("skipping row %d: missing name/grade/class", idx + 2)
            result.skipped += 1
            continue
        raws.append(raw)
    result.students = engine.compute_many(raws)

    logger.info("parsed %d students (%d rows skipped)", len(result.students), result.skipped)
    return result
