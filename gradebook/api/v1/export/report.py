"""
Grade report aggregation.

Pivots flat (student, subject, grade) rows into the sheets of the class grade
workbook. Pure data in, data out; rendering to xlsx lives in service.py.

Summary sheet "Ringkasan Nilai" first, then one sheet per subject:

    Nama Siswa | NIS | <task columns...> | Nilai Akhir | Jumlah Nilai Tugas | Rata-rata Tugas | Rata-rata Keseluruhan

Overall subject average is 0.7 * task average + 0.3 * final grade when both
exist, otherwise whichever exists. Values stay None internally and render
as "-"; averages render with one decimal.
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

TASK_WEIGHT = 0.7
FINAL_WEIGHT = 0.3

NO_VALUE = "-"
SHEET_NAME_MAX_LENGTH = 31
_INVALID_NAME_CHARS = re.compile(r"[\\/?*\[\]:]")

COL_STUDENT = "Nama Siswa"
COL_NIS = "NIS"
COL_FINAL = "Nilai Akhir"
COL_TASK_TOTAL = "Jumlah Nilai Tugas"
COL_TASK_AVERAGE = "Rata-rata Tugas"
COL_OVERALL = "Rata-rata Keseluruhan"
COL_SUBJECT_COUNT = "Jumlah Mapel"
DEFAULT_TASK_COLUMN = "Tugas"

SUMMARY_SHEET = "Ringkasan Nilai"
SUBJECT_STATS_LABEL = "STATISTIK KELAS"
SUMMARY_STATS_LABEL = "RATA-RATA KELAS"
SUMMARY_STATS_COUNT = "Total"
EMPTY_PLACEHOLDER = "Belum ada data"
EMPTY_ROSTER_PLACEHOLDER = "Belum ada data siswa"


@dataclass
class GradeRow:
    """One row of students LEFT JOIN grades; subject and grade fields are None for students without grades."""

    student_name: str
    nis: Optional[str] = None
    subject_name: Optional[str] = None
    grade_value: Optional[float] = None
    grade_type: Optional[str] = None
    task_name: Optional[str] = None


@dataclass
class RosterEntry:
    name: str
    nis: Optional[str] = None
    created_at: Optional[Union[datetime, date]] = None


@dataclass
class Sheet:
    name: str
    columns: List[str]
    rows: List[List[Any]]
    col_widths: List[int]


@dataclass
class Workbook:
    sheets: List[Sheet] = field(default_factory=list)


@dataclass
class _SubjectGrades:
    task_columns: List[str] = field(default_factory=list)
    tasks: Dict[str, Dict[str, float]] = field(default_factory=dict)
    finals: Dict[str, float] = field(default_factory=dict)


@dataclass
class _SubjectResult:
    task_total: Optional[float]
    task_average: Optional[float]
    overall: Optional[float]
    final: Optional[float]


def clean_name(name: Optional[str]) -> str:
    """Strip characters Excel rejects in sheet and file names."""
    cleaned = _INVALID_NAME_CHARS.sub("", name or "").strip()
    return cleaned or "Unknown"


def excel_sheet_title(name: str) -> str:
    return clean_name(name)[:SHEET_NAME_MAX_LENGTH]


def format_average(value: Optional[float]) -> str:
    return NO_VALUE if value is None else f"{value:.1f}"


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def overall_average(task_average: Optional[float], final: Optional[float]) -> Optional[float]:
    if task_average is not None and final is not None:
        return task_average * TASK_WEIGHT + final * FINAL_WEIGHT
    if task_average is not None:
        return task_average
    return final


def _collect(rows: Iterable[GradeRow]):
    roster: Dict[str, Optional[str]] = {}
    subjects: Dict[str, _SubjectGrades] = {}
    for row in rows:
        if row.student_name not in roster or (not roster[row.student_name] and row.nis):
            roster[row.student_name] = row.nis or None
        if not row.subject_name or row.grade_value is None:
            continue
        grades = subjects.setdefault(row.subject_name, _SubjectGrades())
        value = float(row.grade_value)
        if row.grade_type == "task":
            column = row.task_name or DEFAULT_TASK_COLUMN
            if column not in grades.task_columns:
                grades.task_columns.append(column)
            grades.tasks.setdefault(row.student_name, {})[column] = value
        else:
            grades.finals[row.student_name] = value
    return roster, subjects


def _evaluate(grades: _SubjectGrades, student: str) -> _SubjectResult:
    task_values = list(grades.tasks.get(student, {}).values())
    task_total = sum(task_values) if task_values else None
    task_average = task_total / len(task_values) if task_values else None
    final = grades.finals.get(student)
    return _SubjectResult(
        task_total=task_total,
        task_average=task_average,
        overall=overall_average(task_average, final),
        final=final,
    )


def _stats_row(label: str, numeric_columns: List[List[Optional[float]]]) -> List[Any]:
    return [label, NO_VALUE] + [format_average(mean(column)) for column in numeric_columns]


def _placeholder_row(label: str, width: int) -> List[Any]:
    return [label, NO_VALUE] + [NO_VALUE] * (width - 2)


def _subject_sheet(subject: str, grades: _SubjectGrades, roster: Dict[str, Optional[str]]) -> Sheet:
    columns = (
        [COL_STUDENT, COL_NIS]
        + grades.task_columns
        + [COL_FINAL, COL_TASK_TOTAL, COL_TASK_AVERAGE, COL_OVERALL]
    )
    col_widths = [25, 15] + [15] * len(grades.task_columns) + [15, 18, 18, 20]

    if not roster:
        return Sheet(subject, columns, [_placeholder_row(EMPTY_PLACEHOLDER, len(columns))], col_widths)

    rows: List[List[Any]] = []
    numeric: List[List[Optional[float]]] = []
    for student, nis in roster.items():
        result = _evaluate(grades, student)
        student_tasks = grades.tasks.get(student, {})
        values = [student_tasks.get(column) for column in grades.task_columns] + [
            result.final,
            result.task_total,
            result.task_average,
            result.overall,
        ]
        numeric.append(values)
        rendered = [format_average(v) for v in values]
        rows.append([student, nis or NO_VALUE] + rendered)

    rows.append(_stats_row(SUBJECT_STATS_LABEL, [list(column) for column in zip(*numeric)]))
    return Sheet(subject, columns, rows, col_widths)


def _summary_sheet(subjects: Dict[str, _SubjectGrades], roster: Dict[str, Optional[str]]) -> Sheet:
    names = list(subjects)
    columns = [COL_STUDENT, COL_NIS] + names + [COL_OVERALL, COL_SUBJECT_COUNT]
    col_widths = [25, 15] + [15] * len(names) + [20, 15]

    if not roster:
        return Sheet(SUMMARY_SHEET, columns, [_placeholder_row(EMPTY_PLACEHOLDER, len(columns))], col_widths)

    rows: List[List[Any]] = []
    numeric: List[List[Optional[float]]] = []
    for student, nis in roster.items():
        per_subject: List[Optional[float]] = []
        for name in names:
            result = _evaluate(subjects[name], student)
            per_subject.append(result.final if result.final is not None else result.overall)
        counted = [v for v in per_subject if v is not None]
        student_average = mean(counted)
        numeric.append(per_subject + [student_average])
        rows.append(
            [student, nis or NO_VALUE]
            + [format_average(v) for v in per_subject]
            + [format_average(student_average), len(counted)]
        )

    stats = _stats_row(SUMMARY_STATS_LABEL, [list(column) for column in zip(*numeric)])
    rows.append(stats + [SUMMARY_STATS_COUNT])
    return Sheet(SUMMARY_SHEET, columns, rows, col_widths)


def build_grade_report(rows: Iterable[GradeRow], subjects: Optional[Sequence[str]] = None) -> List[Sheet]:
    """Summary sheet followed by one sheet per subject in order of first appearance.

    Every student seen in ``rows`` gets a line on every sheet. Names in
    ``subjects`` that have no grades are appended as empty subject sheets.
    """
    roster, grades_by_subject = _collect(rows)
    for name in subjects or ():
        grades_by_subject.setdefault(name, _SubjectGrades())

    sheets = [_summary_sheet(grades_by_subject, roster)]
    for name, grades in grades_by_subject.items():
        sheet = _subject_sheet(name, grades, roster)
        sheet.name = clean_name(name)
        sheets.append(sheet)
    return sheets


def format_roster_date(value: Optional[Union[datetime, date]]) -> str:
    if value is None:
        return NO_VALUE
    return f"{value.day}/{value.month}/{value.year}"


def build_roster_sheet(students: Sequence[RosterEntry], class_name: str) -> Sheet:
    columns = ["No", COL_STUDENT, COL_NIS, "Tanggal Daftar"]
    rows: List[List[Any]] = [
        [index, s.name, s.nis or NO_VALUE, format_roster_date(s.created_at)]
        for index, s in enumerate(students, start=1)
    ]
    if not rows:
        rows.append([1, EMPTY_ROSTER_PLACEHOLDER, NO_VALUE, NO_VALUE])
    return Sheet(
        name=clean_name(f"Daftar_Siswa_{clean_name(class_name)}"),
        columns=columns,
        rows=rows,
        col_widths=[5, 25, 15, 15],
    )
