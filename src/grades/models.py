"""Data models for grade (semester/quarter) records."""

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from numbers import Number
from typing import Any, Dict, List, Optional

COURSE_TYPES = ("standard", "honors", "advanced")
GRADING_MODES = ("continuous", "discrete")

# Fields returned by the non-detailed listing
SUMMARY_FIELDS = ("gradeId", "userId", "name", "startDate", "endDate", "createdAt", "updatedAt")

# Storage bookkeeping that is never returned to API callers
BOOKKEEPING_FIELDS = ("version",)


class GradeValidationError(ValueError):
    """Raised when a grade document does not satisfy the grade schema."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


@dataclass
class Task:
    name: str
    score: Optional[float] = None
    total: Optional[float] = None
    extraCredit: bool = False


@dataclass
class Category:
    name: str
    weight: float
    tasks: List[Task] = field(default_factory=list)
    percentage: Optional[float] = None
    goal: Optional[float] = None


@dataclass
class Course:
    name: str
    credits: float
    type: str = "standard"
    categories: List[Category] = field(default_factory=list)
    percentage: Optional[float] = None
    goal: Optional[float] = None


@dataclass
class GradeRangeEntry:
    """Lower bound (inclusive) of a letter grade and its GPA values."""

    percentage: float
    letter: str
    GPA: float
    honorsGPA: float
    advancedGPA: float


@dataclass
class Goals:
    gpa: Optional[float] = None
    weightedGPA: Optional[float] = None


def default_grade_range() -> List[GradeRangeEntry]:
    rows = [
        (97, "A+", 4.0, 4.5, 5.0),
        (93, "A", 4.0, 4.5, 5.0),
        (90, "A-", 4.0, 4.5, 5.0),
        (87, "B+", 3.0, 3.5, 4.0),
        (83, "B", 3.0, 3.5, 4.0),
        (80, "B-", 3.0, 3.5, 4.0),
        (77, "C+", 2.0, 2.5, 3.0),
        (73, "C", 2.0, 2.5, 3.0),
        (70, "C-", 2.0, 2.5, 3.0),
        (67, "D+", 1.0, 1.5, 2.0),
        (63, "D", 1.0, 1.5, 2.0),
        (60, "D-", 1.0, 1.5, 2.0),
        (0, "F", 0.0, 0.0, 0.0),
    ]
    return [GradeRangeEntry(*row) for row in rows]


@dataclass
class Grade:
    """A semester or quarter owned by one user."""

    userId: str
    name: str
    startDate: str
    endDate: str
    courses: List[Course] = field(default_factory=list)
    gradingMode: str = "discrete"
    goals: Goals = field(default_factory=Goals)
    gradeRange: List[GradeRangeEntry] = field(default_factory=default_grade_range)
    gradeId: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Grade":
        """Validate ``data`` and build a Grade.

        Raises:
            GradeValidationError: listing every problem found
        """
        checker = _SchemaChecker()
        grade = checker.grade(data)
        if checker.problems:
            raise GradeValidationError(checker.problems)
        return grade


def strip_bookkeeping(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in document.items() if k not in BOOKKEEPING_FIELDS}


def summarize(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: document[k] for k in SUMMARY_FIELDS if k in document}


class _SchemaChecker:
    """Collects schema problems while converting a document to dataclasses."""

    def __init__(self):
        self.problems: List[str] = []

    def _fail(self, where: str, message: str) -> None:
        self.problems.append(f"{where}: {message}")

    def _mapping(self, value: Any, where: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            self._fail(where, "must be an object")
            return {}
        return value

    def _list(self, value: Any, where: str) -> List[Any]:
        if value is None:
            return []
        if not isinstance(value, list):
            self._fail(where, "must be an array")
            return []
        return value

    def _string(self, data: Dict[str, Any], key: str, where: str, required: bool = True) -> Any:
        value = data.get(key)
        if value is None:
            if required:
                self._fail(f"{where}.{key}", "is required")
            return value
        if not isinstance(value, str) or (required and not value.strip()):
            self._fail(f"{where}.{key}", "must be a non-empty string")
        return value

    def _number(
        self,
        data: Dict[str, Any],
        key: str,
        where: str,
        required: bool = False,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
    ) -> Any:
        value = data.get(key)
        if value is None:
            if required:
                self._fail(f"{where}.{key}", "is required")
            return None
        if isinstance(value, bool) or not isinstance(value, Number):
            self._fail(f"{where}.{key}", "must be a number")
            return value
        if not math.isfinite(value):
            self._fail(f"{where}.{key}", "must be a finite number")
            return value
        if minimum is not None and value < minimum:
            self._fail(f"{where}.{key}", f"must be >= {minimum}")
        if maximum is not None and value > maximum:
            self._fail(f"{where}.{key}", f"must be <= {maximum}")
        return value

    def _choice(self, data: Dict[str, Any], key: str, where: str, choices, default: str) -> str:
        value = data.get(key, default)
        if value is None:
            return default
        if value not in choices:
            self._fail(f"{where}.{key}", f"must be one of {', '.join(choices)}")
        return value

    def _date(self, data: Dict[str, Any], key: str, where: str) -> Optional[date]:
        value = self._string(data, key, where)
        if not isinstance(value, str):
            return None
        try:
            if len(value) == 10:
                return date.fromisoformat(value)
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            self._fail(f"{where}.{key}", "must be an ISO-8601 date")
            return None

    def task(self, value: Any, where: str) -> Task:
        data = self._mapping(value, where)
        extra = data.get("extraCredit", False)
        if not isinstance(extra, bool):
            self._fail(f"{where}.extraCredit", "must be a boolean")
        return Task(
            name=self._string(data, "name", where),
            score=self._number(data, "score", where),
            total=self._number(data, "total", where),
            extraCredit=extra,
        )

    def category(self, value: Any, where: str) -> Category:
        data = self._mapping(value, where)
        tasks = self._list(data.get("tasks"), f"{where}.tasks")
        return Category(
            name=self._string(data, "name", where),
            weight=self._number(data, "weight", where, required=True, minimum=0, maximum=1),
            tasks=[self.task(t, f"{where}.tasks[{i}]") for i, t in enumerate(tasks)],
            percentage=self._number(data, "percentage", where),
            goal=self._number(data, "goal", where),
        )

    def course(self, value: Any, where: str) -> Course:
        data = self._mapping(value, where)
        categories = self._list(data.get("categories"), f"{where}.categories")
        return Course(
            name=self._string(data, "name", where),
            credits=self._number(data, "credits", where, required=True, minimum=0),
            type=self._choice(data, "type", where, COURSE_TYPES, "standard"),
            categories=[self.category(c, f"{where}.categories[{i}]") for i, c in enumerate(categories)],
            percentage=self._number(data, "percentage", where),
            goal=self._number(data, "goal", where),
        )

    def grade_range_entry(self, value: Any, where: str) -> GradeRangeEntry:
        data = self._mapping(value, where)
        return GradeRangeEntry(
            percentage=self._number(data, "percentage", where, required=True, minimum=0),
            letter=self._string(data, "letter", where),
            GPA=self._number(data, "GPA", where, required=True, minimum=0),
            honorsGPA=self._number(data, "honorsGPA", where, required=True, minimum=0),
            advancedGPA=self._number(data, "advancedGPA", where, required=True, minimum=0),
        )

    def grade(self, value: Any) -> Grade:
        where = "grade"
        data = self._mapping(value, where)

        start = self._date(data, "startDate", where)
        end = self._date(data, "endDate", where)
        if start and end and end < start:
            self._fail(f"{where}.endDate", "must not be before startDate")

        goals_data = self._mapping(data.get("goals") or {}, f"{where}.goals")
        courses = self._list(data.get("courses"), f"{where}.courses")

        if data.get("gradeRange") is None:
            grade_range = default_grade_range()
        else:
            grade_range = [
                self.grade_range_entry(r, f"{where}.gradeRange[{i}]")
                for i, r in enumerate(self._list(data.get("gradeRange"), f"{where}.gradeRange"))
            ]

        version = data.get("version", 0)
        if isinstance(version, bool) or not isinstance(version, Number) or not math.isfinite(version):
            self._fail(f"{where}.version", "must be a number")
            version = 0

        return Grade(
            userId=self._string(data, "userId", where),
            name=self._string(data, "name", where),
            startDate=data.get("startDate"),
            endDate=data.get("endDate"),
            courses=[self.course(c, f"{where}.courses[{i}]") for i, c in enumerate(courses)],
            gradingMode=self._choice(data, "gradingMode", where, GRADING_MODES, "discrete"),
            goals=Goals(
                gpa=self._number(goals_data, "gpa", f"{where}.goals", minimum=0),
                weightedGPA=self._number(goals_data, "weightedGPA", f"{where}.goals", minimum=0),
            ),
            gradeRange=grade_range,
            gradeId=self._string(data, "gradeId", where, required=False),
            createdAt=self._string(data, "createdAt", where, required=False),
            updatedAt=self._string(data, "updatedAt", where, required=False),
            version=int(version),
        )
