import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from backend.core.engine import EligibilityEngine
from backend.core.models import ComputedStudentRecord, RawEnrollmentRecord, StoredStudent

logger = logging.getLogger(__name__)


class StudentNotFoundError(KeyError):
    pass


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def student_from_document(doc: Dict[str, Any], engine: EligibilityEngine) -> StoredStudent:
    # derived fields are re-computed with the store's engine, never trusted from the document
    record = engine.compute(RawEnrollmentRecord.from_dict(doc))
    return StoredStudent(
        id=doc["id"],
        record=record,
        created_at=doc.get("created_at", ""),
        updated_at=doc.get("updated_at", ""),
    )


class StudentRepository(Protocol):
    def list_students(self) -> List[StoredStudent]:
        ...

    def get(self, student_id: str) -> StoredStudent:
        ...

    def add(self, record: ComputedStudentRecord) -> StoredStudent:
        ...

    def add_many(self, records: Iterable[ComputedStudentRecord]) -> List[StoredStudent]:
        ...

    def update(self, student_id: str, record: ComputedStudentRecord) -> StoredStudent:
        ...

    def delete(self, student_id: str) -> None:
        ...


class InMemoryStudentRepository:
    """Document collection kept in a dict of JSON-ready documents, keyed by id."""

    def __init__(self, clock: Callable[[], str] = utc_now, engine: Optional[EligibilityEngine] = None):
        self.clock = clock
        self.engine = engine or EligibilityEngine()
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    # ---------- storage hooks ----------
    def _load(self) -> Dict[str, Dict[str, Any]]:
        return self._docs

    def _save(self, docs: Dict[str, Dict[str, Any]]) -> None:
        self._docs = docs

    # ---------- envelope ----------
    def _envelope(self, record: ComputedStudentRecord, created_at: Optional[str] = None,
                  student_id: Optional[str] = None) -> StoredStudent:
        now = self.clock()
        return StoredStudent(
            id=student_id or uuid.uuid4().hex,
            record=record,
            created_at=created_at or now,
            updated_at=now,
        )

    def list_students(self) -> List[StoredStudent]:
        with self._lock:
            docs = list(self._load().values())
        students = [student_from_document(d, self.engine) for d in docs]
        # newest first
        students.sort(key=lambda s: s.created_at, reverse=True)
        return students

    def get(self, student_id: str) -> StoredStudent:
        with self._lock:
            doc = self._load().get(student_id)
        if doc is None:
            raise StudentNotFoundError(student_id)
        return student_from_document(doc, self.engine)

    def add(self, record: ComputedStudentRecord) -> StoredStudent:
        return self.add_many([record])[0]

    def add_many(self, records: Iterable[ComputedStudentRecord]) -> List[StoredStudent]:
        stored = [self._envelope(r) for r in records]
        with self._lock:
            docs = dict(self._load())
            for s in stored:
                docs[s.id] = s.to_document()
            self._save(docs)
        return stored

    def update(self, student_id: str, record: ComputedStudentRecord) -> StoredStudent:
        with self._lock:
            docs = dict(self._load())
            existing = docs.get(student_id)
            if existing is None:
                raise StudentNotFoundError(student_id)
            stored = self._envelope(record, created_at=existing.get("created_at"), student_id=student_id)
            docs[student_id] = stored.to_document()
            self._save(docs)
        return stored

    def delete(self, student_id: str) -> None:
        with self._lock:
            docs = dict(self._load())
            if student_id not in docs:
                raise StudentNotFoundError(student_id)
            del docs[student_id]
            self._save(docs)


class JsonStudentRepository(InMemoryStudentRepository):
    """One JSON file holding the whole students collection."""

    def __init__(self, path: str, clock: Callable[[], str] = utc_now,
                 engine: Optional[EligibilityEngine] = None):
        super().__init__(clock=clock, engine=engine)
        self.path = path

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            items = json.load(f)
        return {d["id"]: d for d in items}

    def _save(self, docs: Dict[str, Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(list(docs.values()), f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)
        logger.debug("wrote %d students to %s", len(docs), self.path)
