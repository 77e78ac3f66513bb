import io
import logging
import os
from typing import List, Dict, Any, Optional

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse, JSONResponse, Response
from pydantic import BaseModel

from backend.core.charts import distribution_chart
from backend.core.engine import EligibilityEngine
from backend.core.filters import SORT_KEYS, filter_students, normalize_filters, sort_students
from backend.core.forms import FormValidationError, StudentForm, save_form
from backend.core.loaders import load_policy
from backend.core.models import Grade, Specialization1, Specialization2, StudentStatus, UNIT_CODES
from backend.core.reports import UNITS_SUFFIX, dashboard_stats, distribution, mapping_report
from backend.core.repositories import JsonStudentRepository, StudentNotFoundError
from backend.core.rule_factory import RuleFactory
from backend.importers.excel import SpreadsheetImportError, parse_students


PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get("SCHOOL_DATA_DIR", os.path.join(PROJECT_ROOT, "data"))
POLICY_PATH = os.environ.get("SCHOOL_POLICY_PATH", os.path.join(DATA_DIR, "policy.json"))
PORT = int(os.environ.get("SCHOOL_API_PORT", "8000"))

logger = logging.getLogger(__name__)

engine = EligibilityEngine(RuleFactory().build_policy(load_policy(POLICY_PATH)))
repository = JsonStudentRepository(os.path.join(DATA_DIR, "students.json"), engine=engine)

CHART_TITLES = {
    "math_units": "יחידות לימוד - מתמטיקה",
    "english_units": "יחידות לימוד - אנגלית",
    "specialization1": "התמחות 1",
    "specialization2": "התמחות 2",
}


app = FastAPI(title="School Eligibility Dashboard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root_redirect():
    return RedirectResponse(url="/docs")


# --------- Request models ----------
class StudentFormInput(BaseModel):
    name: str = ""
    grade: str = ""
    class_num: str = ""
    student_id: str = ""
    math_units: Optional[int] = None
    english_units: Optional[int] = None
    specialization1: str = ""
    specialization2: str = ""
    social_units: int = 0

    def to_form(self) -> StudentForm:
        return StudentForm(**self.model_dump())


# --------- helpers ----------
def _grade_or_none(grade: Optional[str]) -> Optional[Grade]:
    if grade is None or grade.strip() in ("", "All"):
        return None
    try:
        return Grade(grade.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unsupported grade: {grade}")


def _internal_error(what: str, e: Exception) -> JSONResponse:
    logger.exception("%s failed", what)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": f"{what} failed", "details": str(e)}
    )


# --------- Endpoints ----------
@app.get("/meta/options")
def meta_options() -> Dict[str, Any]:
    return {
        "grades": [g.value for g in Grade],
        "specialization1": [s.value for s in Specialization1 if s.value],
        "specialization2": [s.value for s in Specialization2 if s.value],
        "statuses": [s.value for s in StudentStatus],
        "unit_codes": list(UNIT_CODES),
        "sort_keys": list(SORT_KEYS),
    }


@app.post("/compute")
def compute(req: StudentFormInput):
    try:
        raw = req.to_form().to_raw_record()
    except FormValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {
        "student": engine.compute(raw).to_dict(),
        "explanations": engine.explain(raw),
    }


@app.get("/students")
def list_students(
    grade: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    math_units: Optional[str] = Query(None),
    english_units: Optional[str] = Query(None),
    specialization1: Optional[str] = Query(None),
    specialization2: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    direction: str = Query("asc"),
) -> List[Dict[str, Any]]:
    filters = normalize_filters({
        "grade": grade,
        "search": search,
        "math_units": math_units,
        "english_units": english_units,
        "specialization1": specialization1,
        "specialization2": specialization2,
    })
    students = filter_students(repository.list_students(), filters)
    if sort:
        try:
            students = sort_students(students, sort, direction)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return [s.to_document() for s in students]


@app.get("/students/{student_id}")
def get_student(student_id: str) -> Dict[str, Any]:
    try:
        return repository.get(student_id).to_document()
    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail=f"Student not found: {student_id}")


@app.post("/students", status_code=status.HTTP_201_CREATED)
def create_student(req: StudentFormInput):
    try:
        record = save_form(req.to_form(), engine)
        return repository.add(record).to_document()
    except FormValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        return _internal_error("Save", e)


@app.put("/students/{student_id}")
def update_student(student_id: str, req: StudentFormInput):
    try:
        # whole record re-derived from the form, never patched
        record = save_form(req.to_form(), engine)
        return repository.update(student_id, record).to_document()
    except FormValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail=f"Student not found: {student_id}")
    except Exception as e:
        return _internal_error("Save", e)


@app.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(student_id: str):
    try:
        repository.delete(student_id)
    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail=f"Student not found: {student_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/students/import")
async def import_students(file: UploadFile = File(...)):
    try:
        content = await file.read()
        result = parse_students(io.BytesIO(content), filename=file.filename, engine=engine)
        repository.add_many(result.students)
        return {"imported": len(result.students), "skipped": result.skipped}
    except SpreadsheetImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        return _internal_error("Import", e)


@app.get("/dashboard/stats")
def stats() -> Dict[str, int]:
    return dashboard_stats(repository.list_students())


def _distribution(field: str, grade: Optional[str]) -> List[Dict[str, Any]]:
    suffix = UNITS_SUFFIX if field in ("math_units", "english_units") else ""
    try:
        return distribution(repository.list_students(), field, grade=_grade_or_none(grade), suffix=suffix)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/dashboard/distribution/{field}")
def distribution_endpoint(field: str, grade: Optional[str] = Query(None)) -> List[Dict[str, Any]]:
    return _distribution(field, grade)


@app.get("/dashboard/charts/{field}")
def chart_endpoint(field: str, grade: Optional[str] = Query(None)) -> Dict[str, Any]:
    data = _distribution(field, grade)
    return distribution_chart(data, CHART_TITLES[field])


@app.get("/reports/mapping")
def mapping() -> Dict[str, Any]:
    return mapping_report(repository.list_students())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("backend.app:app", host="0.0.0.0", port=PORT, reload=True)
