import pytest

from backend.core.forms import FormValidationError, StudentForm, save_form
from backend.core.models import Grade, Specialization1, StudentStatus


def test_form_builds_trimmed_raw_record():
    raw = StudentForm(
        name="  אחמד ",
        grade="יב",
        class_num=" 2 ",
        student_id="  ",
        math_units=5,
        english_units="5",
        specialization1="מדעי המחשב",
    ).to_raw_record()
    assert raw.name == "אחמד"
    assert raw.class_num == "2"
    assert raw.student_id is None
    assert raw.grade == Grade.TWELFTH
    assert raw.english_units == 5
    assert raw.specialization1 == Specialization1.COMPUTER_SCIENCE
    assert raw.social_units == 0


@pytest.mark.parametrize("kw, field, message", [
    (dict(name=" ", grade="יב", class_num="1"), "name", "חובה למלא שם תלמיד"),
    (dict(name="x", grade="", class_num="1"), "grade", "חובה לבחור שכבה"),
    (dict(name="x", grade="יב", class_num=""), "class_num", "חובה למלא כיתה"),
])
def test_required_fields(kw, field, message):
    with pytest.raises(FormValidationError) as exc:
        StudentForm(**kw).to_raw_record()
    assert exc.value.field == field
    assert exc.value.message == message


def test_rejects_values_outside_closed_sets():
    with pytest.raises(FormValidationError) as exc:
        StudentForm(name="x", grade="יג", class_num="1").to_raw_record()
    assert exc.value.field == "grade"

    with pytest.raises(FormValidationError) as exc:
        StudentForm(name="x", grade="יב", class_num="1", math_units=2).to_raw_record()
    assert exc.value.field == "math_units"

    with pytest.raises(FormValidationError) as exc:
        StudentForm(name="x", grade="יב", class_num="1", specialization2="ביולוגיה").to_raw_record()
    assert exc.value.field == "specialization2"


def test_save_form_computes_status():
    s = save_form(StudentForm(
        name="x", grade="יב", class_num="1",
        math_units=5, english_units=5,
        specialization1="מידע ונתונים", specialization2="פיזיקה",
        social_units=1,
    ))
    assert s.total_units == 21
    assert s.status == StudentStatus.ELIGIBLE


def test_edit_form_round_trips_record():
    s = save_form(StudentForm(name="x", grade="י", class_num="4", english_units=4, social_units=2))
    form = StudentForm.from_record(s)
    assert form.grade == "י"
    assert form.math_units is None
    assert form.specialization1 == ""
    assert save_form(form) == s


@pytest.mark.parametrize("value", [4.7, "3.5", True])
def test_fractional_units_are_rejected(value):
    with pytest.raises(FormValidationError) as exc:
        StudentForm(name="x", grade="יב", class_num="1", english_units=value).to_raw_record()
    assert exc.value.field == "english_units"


def test_integral_float_units_are_accepted():
    raw = StudentForm(name="x", grade="יב", class_num="1", math_units=5.0).to_raw_record()
    assert raw.math_units == 5
    assert isinstance(raw.math_units, int)
