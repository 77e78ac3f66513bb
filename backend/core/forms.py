from dataclasses import dataclass
from typing import Any, Optional

from backend.core.engine import EligibilityEngine, compute_student
from backend.core.models import (
    ComputedStudentRecord,
    Grade,
    RawEnrollmentRecord,
    Specialization1,
    Specialization2,
    UNIT_CODES,
)


class FormValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def _units(field: str, value: Any) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        raise FormValidationError(field, f"יח\"ל לא תקינות: {value!r}")
    # 4.7 is not 4 units
    if isinstance(value, bool) or n not in UNIT_CODES:
        raise FormValidationError(field, f"יח\"ל לא תקינות: {value!r}")
    return int(n)


@dataclass
class StudentForm:
    """Manual entry / edit form. Status is never entered, it is derived on save."""
    name: str = ""
    grade: str = ""
    class_num: str = ""
    student_id: str = ""
    math_units: Optional[int] = None
    english_units: Optional[int] = None
    specialization1: str = ""
    specialization2: str = ""
    social_units: int = 0

    @classmethod
    def from_record(cls, record: ComputedStudentRecord) -> "StudentForm":
        return cls(
            name=record.name,
            grade=record.grade.value,
            class_num=record.class_num,
            student_id=record.student_id or "",
            math_units=record.math_units,
            english_units=record.english_units,
            specialization1=record.specialization1.value,
            specialization2=record.specialization2.value,
            social_units=record.social_units,
        )

    def to_raw_record(self) -> RawEnrollmentRecord:
        name = (self.name or "").strip()
        if not name:
            raise FormValidationError("name", "חובה למלא שם תלמיד")

        grade = (self.grade or "").strip()
        if not grade:
            raise FormValidationError("grade", "חובה לבחור שכבה")
        try:
            grade_value = Grade(grade)
        except ValueError:
            raise FormValidationError("grade", f"שכבה לא מוכרת: {grade}")

        class_num = str(self.class_num or "").strip()
        if not class_num:
            raise FormValidationError("class_num", "חובה למלא כיתה")

        try:
            spec1 = Specialization1((self.specialization1 or "").strip())
        except ValueError:
            raise FormValidationError("specialization1", f"התמחות לא מוכרת: {self.specialization1}")
        try:
            spec2 = Specialization2((self.specialization2 or "").strip())
        except ValueError:
            raise FormValidationError("specialization2", f"התמחות לא מוכרת: {self.specialization2}")

        return RawEnrollmentRecord(
            student_id=(self.student_id or "").strip() or None,
            name=name,
            grade=grade_value,
            class_num=class_num,
            math_units=_units("math_units", self.math_units),
            english_units=_units("english_units", self.english_units),
            specialization1=spec1,
            specialization2=spec2,
            social_units=self.social_units or 0,
        )


def save_form(form: StudentForm, engine: Optional[EligibilityEngine] = None) -> ComputedStudentRecord:
    raw = form.to_raw_record()
    if engine is None:
        return compute_student(raw)
    return engine.compute(raw)
