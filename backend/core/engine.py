import math
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from backend.core.models import (
    ComputedStudentRecord,
    RawEnrollmentRecord,
    Specialization1,
    Specialization2,
    SPECIALIZATION_UNITS,
    UnitTotals,
)
from backend.core.rule_factory import DEFAULT_POLICY, RuleFactory
from backend.core.rules import StatusPolicy


def _norm(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value if value is not None else "").strip()


def _to_int(value: Any) -> int:
    # None / junk / NaN / inf -> 0, for arithmetic only
    if value is None or isinstance(value, bool):
        return 0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(n):
        return 0
    return int(n)


def spec1_to_units(spec1: Any) -> Tuple[int, int]:
    """specialization1 -> (cs_units, data_units)"""
    s = _norm(spec1)
    if s == Specialization1.COMPUTER_SCIENCE.value:
        return SPECIALIZATION_UNITS, 0
    if s == Specialization1.DATA.value:
        return 0, SPECIALIZATION_UNITS
    return 0, 0


def spec2_to_units(spec2: Any) -> Tuple[int, int]:
    """specialization2 -> (physics_units, chemistry_units)"""
    s = _norm(spec2)
    if s == Specialization2.PHYSICS.value:
        return SPECIALIZATION_UNITS, 0
    if s == Specialization2.CHEMISTRY.value:
        return 0, SPECIALIZATION_UNITS
    return 0, 0


def unit_totals(raw: RawEnrollmentRecord) -> UnitTotals:
    cs, data = spec1_to_units(raw.specialization1)
    physics, chemistry = spec2_to_units(raw.specialization2)
    m = _to_int(raw.math_units)
    e = _to_int(raw.english_units)
    total = e + m + cs + data + physics + chemistry + _to_int(raw.social_units)
    return UnitTotals(math=m, english=e, total=total)


class EligibilityEngine:
    def __init__(self, policy: Optional[StatusPolicy] = None):
        self.policy = policy or RuleFactory().build_policy(DEFAULT_POLICY)

    def compute(self, raw: RawEnrollmentRecord) -> ComputedStudentRecord:
        cs, data = spec1_to_units(raw.specialization1)
        physics, chemistry = spec2_to_units(raw.specialization2)
        totals = unit_totals(raw)
        m, e = totals.math, totals.english

        # independent flags, not a priority chain
        tech_eligible = e == 5 and m == 5
        elite_tech = tech_eligible and (cs == 5 or data == 5)
        science_elite = m == 5 and (physics == 5 or chemistry == 5)
        elite555 = m == 5 and e == 5 and (physics == 5 or cs == 5)

        return ComputedStudentRecord(
            name=raw.name,
            grade=raw.grade,
            class_num=raw.class_num,
            math_units=raw.math_units,
            english_units=raw.english_units,
            specialization1=raw.specialization1,
            specialization2=raw.specialization2,
            social_units=raw.social_units,
            student_id=raw.student_id,
            cs_units=cs,
            data_units=data,
            physics_units=physics,
            chemistry_units=chemistry,
            tech_eligible=tech_eligible,
            elite_tech=elite_tech,
            science_elite=science_elite,
            elite555=elite555,
            total_units=totals.total,
            status=self.policy.classify(totals),
        )

    def compute_many(self, raws: Iterable[RawEnrollmentRecord]) -> List[ComputedStudentRecord]:
        return [self.compute(r) for r in raws]

    def explain(self, raw: RawEnrollmentRecord) -> List[str]:
        totals = unit_totals(raw)
        lines = [f"units: english={totals.english}, math={totals.math}, total={totals.total}"]
        lines.extend(self.policy.explain(totals))
        return lines


_default_engine = EligibilityEngine()


def compute_student(raw: RawEnrollmentRecord) -> ComputedStudentRecord:
    return _default_engine.compute(raw)
