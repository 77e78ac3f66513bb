import itertools

import pytest

from backend.core.engine import EligibilityEngine, compute_student, spec1_to_units, spec2_to_units
from backend.core.models import (
    Grade,
    RawEnrollmentRecord,
    Specialization1,
    Specialization2,
    StudentStatus,
)
from backend.core.rule_factory import RuleFactory


def make_raw(**kw) -> RawEnrollmentRecord:
    base = dict(name="אחמד", grade=Grade.TWELFTH, class_num="1")
    base.update(kw)
    return RawEnrollmentRecord(**base)


def test_scenario_a_full_elite():
    s = compute_student(make_raw(
        math_units=5,
        english_units=5,
        specialization1=Specialization1.COMPUTER_SCIENCE,
        specialization2=Specialization2.PHYSICS,
        social_units=2,
    ))
    assert (s.cs_units, s.data_units, s.physics_units, s.chemistry_units) == (5, 0, 5, 0)
    assert s.tech_eligible and s.elite_tech and s.science_elite and s.elite555
    assert s.total_units == 22
    assert s.status == StudentStatus.ELIGIBLE


def test_scenario_b_core_ok_but_few_units():
    s = compute_student(make_raw(math_units=3, english_units=4))
    assert s.total_units == 7
    assert s.status == StudentStatus.IN_PROGRESS
    assert not s.tech_eligible


def test_scenario_c_partial_block():
    s = compute_student(make_raw(
        math_units=5,
        english_units=4,
        specialization1=Specialization1.DATA,
        specialization2=Specialization2.CHEMISTRY,
        social_units=1,
    ))
    assert s.data_units == 5 and s.chemistry_units == 5
    assert s.cs_units == 0 and s.physics_units == 0
    assert s.total_units == 20
    assert s.status == StudentStatus.PARTIAL_BLOCK
    assert s.science_elite
    assert not s.elite555


def test_scenario_d_missing_units_stay_none():
    s = compute_student(make_raw(math_units=None, english_units=None))
    assert s.math_units is None and s.english_units is None
    assert (s.cs_units, s.data_units, s.physics_units, s.chemistry_units, s.total_units) == (0, 0, 0, 0, 0)
    assert s.status == StudentStatus.IN_PROGRESS


@pytest.mark.parametrize("social, total, expected", [
    (1, 18, StudentStatus.IN_PROGRESS),
    (2, 19, StudentStatus.PARTIAL_BLOCK),
    (3, 20, StudentStatus.PARTIAL_BLOCK),
    (4, 21, StudentStatus.ELIGIBLE),
])
def test_status_thresholds_are_inclusive(social, total, expected):
    # 4 + 3 + 5 + 5 = 17 before social units
    s = compute_student(make_raw(
        english_units=4,
        math_units=3,
        specialization1=Specialization1.COMPUTER_SCIENCE,
        specialization2=Specialization2.PHYSICS,
        social_units=social,
    ))
    assert s.total_units == total
    assert s.status == expected


def test_core_floor_blocks_high_totals():
    # English 3 fails the floor no matter how many units
    s = compute_student(make_raw(english_units=3, math_units=5, social_units=20))
    assert s.total_units == 28
    assert s.status == StudentStatus.IN_PROGRESS


def test_elite555_ignores_data_and_chemistry():
    s = compute_student(make_raw(
        math_units=5,
        english_units=5,
        specialization1=Specialization1.DATA,
        specialization2=Specialization2.CHEMISTRY,
    ))
    assert s.elite_tech
    assert s.science_elite
    assert not s.elite555


def test_invalid_numbers_count_as_zero():
    raw = make_raw(math_units="abc", english_units=float("nan"), social_units=float("inf"))
    s = compute_student(raw)
    assert s.total_units == 0
    assert s.math_units == "abc"
    assert s.status == StudentStatus.IN_PROGRESS


def test_unknown_specialization_strings_yield_zero():
    assert spec1_to_units("רובוטיקה") == (0, 0)
    assert spec2_to_units(None) == (0, 0)
    assert spec1_to_units(" מדעי המחשב ") == (5, 0)
    assert spec2_to_units(Specialization2.CHEMISTRY) == (0, 5)


def test_raw_fields_copied_unchanged():
    raw = make_raw(student_id="ID1", math_units=4, english_units=5, social_units=3)
    s = compute_student(raw)
    assert s.raw() == raw


def test_properties_over_all_inputs():
    units = [None, 3, 4, 5]
    combos = itertools.product(units, units, list(Specialization1), list(Specialization2), [0, 1, 6])
    for math_u, eng_u, s1, s2, social in combos:
        raw = make_raw(math_units=math_u, english_units=eng_u,
                       specialization1=s1, specialization2=s2, social_units=social)
        s = compute_student(raw)
        assert not (s.cs_units == 5 and s.data_units == 5)
        assert not (s.physics_units == 5 and s.chemistry_units == 5)
        assert s.total_units == ((eng_u or 0) + (math_u or 0) + s.cs_units + s.data_units
                                 + s.physics_units + s.chemistry_units + social)
        if s.elite_tech:
            assert s.tech_eligible
        assert s.status in set(StudentStatus)
        assert compute_student(raw) == s


def test_custom_policy_from_json():
    policy = RuleFactory().build_policy({
        "tiers": [{"status": "זכאי", "rules": [{"type": "total_units", "min_total": 10}]}],
        "fallback": "בתהליך",
    })
    engine = EligibilityEngine(policy)
    assert engine.compute(make_raw(math_units=5, english_units=5)).status == StudentStatus.ELIGIBLE
    assert engine.compute(make_raw(math_units=3, english_units=3)).status == StudentStatus.IN_PROGRESS


def test_explain_reports_first_matching_tier():
    lines = EligibilityEngine().explain(make_raw(math_units=5, english_units=4, social_units=10))
    assert lines[0] == "units: english=4, math=5, total=19"
    assert lines[1].startswith("זכאי: failed")
    assert lines[2].startswith("חסם 1-2: passed")
    assert len(lines) == 3


def test_compute_many_preserves_order():
    raws = [make_raw(name="א"), make_raw(name="ב"), make_raw(name="ג")]
    assert [s.name for s in EligibilityEngine().compute_many(raws)] == ["א", "ב", "ג"]
