from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Optional, Dict, Any


class Grade(str, Enum):
    NINTH = "ט"
    TENTH = "י"
    ELEVENTH = "יא"
    TWELFTH = "יב"


class Specialization1(str, Enum):
    NONE = ""
    COMPUTER_SCIENCE = "מדעי המחשב"
    DATA = "מידע ונתונים"


class Specialization2(str, Enum):
    NONE = ""
    PHYSICS = "פיזיקה"
    CHEMISTRY = "כימיה"


class StudentStatus(str, Enum):
    ELIGIBLE = "זכאי"
    PARTIAL_BLOCK = "חסם 1-2"
    IN_PROGRESS = "בתהליך"


UNIT_CODES = (3, 4, 5)
SPECIALIZATION_UNITS = 5


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class RawEnrollmentRecord:
    name: str
    grade: Grade
    class_num: str
    math_units: Optional[int] = None
    english_units: Optional[int] = None
    specialization1: Specialization1 = Specialization1.NONE
    specialization2: Specialization2 = Specialization2.NONE
    social_units: int = 0
    student_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawEnrollmentRecord":
        return cls(
            name=data["name"],
            grade=Grade(data["grade"]),
            class_num=data["class_num"],
            math_units=data.get("math_units"),
            english_units=data.get("english_units"),
            specialization1=Specialization1(data.get("specialization1") or ""),
            specialization2=Specialization2(data.get("specialization2") or ""),
            social_units=data.get("social_units", 0),
            student_id=data.get("student_id"),
        )


@dataclass(frozen=True)
class ComputedStudentRecord:
    # raw fields, copied unchanged
    name: str
    grade: Grade
    class_num: str
    math_units: Optional[int]
    english_units: Optional[int]
    specialization1: Specialization1
    specialization2: Specialization2
    social_units: int
    student_id: Optional[str]

    # derived
    cs_units: int
    data_units: int
    physics_units: int
    chemistry_units: int
    tech_eligible: bool
    elite_tech: bool
    science_elite: bool
    elite555: bool
    total_units: int
    status: StudentStatus

    def raw(self) -> RawEnrollmentRecord:
        return RawEnrollmentRecord(**{f.name: getattr(self, f.name) for f in fields(RawEnrollmentRecord)})

    def to_dict(self) -> Dict[str, Any]:
        return {k: _plain(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class StoredStudent:
    """
    Storage envelope: the identifier and timestamps belong to the store,
    the academic fields belong to the engine.
    """
    id: str
    record: ComputedStudentRecord
    created_at: str
    updated_at: str

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {"id": self.id}
        doc.update(self.record.to_dict())
        doc["created_at"] = self.created_at
        doc["updated_at"] = self.updated_at
        return doc


@dataclass
class RuleResult:
    passed: bool
    explanation: str


@dataclass(frozen=True)
class UnitTotals:
    """Zero-substituted unit counts the status rules are evaluated against."""
    math: int
    english: int
    total: int
