import io
import logging
from datetime import date
from typing import List, Optional, Tuple

from openpyxl import Workbook as XlsxWorkbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import ExportError
from gradebook.core.models import Grade, SchoolClass, Student, Subject, Task

from .report import (
    GradeRow,
    RosterEntry,
    Workbook,
    build_grade_report,
    build_roster_sheet,
    clean_name,
    excel_sheet_title,
)

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _class_name(db: AsyncSession, class_id: int) -> str:
    school_class = await db.get(SchoolClass, class_id)
    return school_class.name if school_class else "Unknown"


async def load_grade_rows(
    db: AsyncSession,
    class_id: int,
    semester: Optional[int] = None,
    academic_year: Optional[str] = None,
) -> List[GradeRow]:
    """Every student of the class with their grades; the period filters sit in the join so
    students without grades in the period are still returned."""
    join_on = [Grade.student_id == Student.id]
    if semester is not None:
        join_on.append(Grade.semester == semester)
    if academic_year:
        join_on.append(Grade.academic_year == academic_year)

    result = await db.execute(
        select(
            Student.name,
            Student.nis,
            Subject.name,
            Grade.grade_value,
            Grade.grade_type,
            Task.name,
        )
        .select_from(Student)
        .outerjoin(Grade, and_(*join_on))
        .outerjoin(Subject, Grade.subject_id == Subject.id)
        .outerjoin(Task, Grade.task_id == Task.id)
        .where(Student.class_id == class_id)
        .order_by(Student.name, Subject.name, Grade.grade_type.desc(), Task.created_at, Grade.id)
    )
    return [
        GradeRow(
            student_name=student_name,
            nis=nis,
            subject_name=subject_name,
            grade_value=grade_value,
            grade_type=grade_type,
            task_name=task_name,
        )
        for student_name, nis, subject_name, grade_value, grade_type, task_name in result.all()
    ]


def render_workbook(workbook: Workbook) -> bytes:
    wb = XlsxWorkbook()
    wb.remove(wb.active)
    for sheet in workbook.sheets:
        ws = wb.create_sheet(excel_sheet_title(sheet.name))
        ws.append(sheet.columns)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in sheet.rows:
            ws.append(row)
        for index, width in enumerate(sheet.col_widths, start=1):
            ws.column_dimensions[get_column_letter(index)].width = width
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


def grade_report_filename(
    class_name: str,
    semester: Optional[int],
    academic_year: Optional[str],
    today: Optional[date] = None,
) -> str:
    today = today or date.today()
    period = f"Sem{semester}_" if semester is not None else ""
    year = academic_year or str(today.year)
    return clean_name(f"Nilai_Per_Mapel_{clean_name(class_name)}_{period}{year}_{today.isoformat()}") + ".xlsx"


async def export_grades_excel(
    db: AsyncSession,
    class_id: int,
    semester: Optional[int] = None,
    academic_year: Optional[str] = None,
) -> Tuple[bytes, str]:
    """Build the class grade workbook. Returns (xlsx bytes, download filename)."""
    rows = await load_grade_rows(db, class_id, semester, academic_year)
    class_name = await _class_name(db, class_id)
    try:
        content = render_workbook(Workbook(sheets=build_grade_report(rows)))
    except Exception as e:
        logger.exception("Grade export failed for class %s", class_id)
        raise ExportError() from e
    filename = grade_report_filename(class_name, semester, academic_year)
    logger.info("Exported %s grade rows for class %s as %s", len(rows), class_id, filename)
    return content, filename


async def export_students_excel(db: AsyncSession, class_id: int) -> Tuple[bytes, str]:
    result = await db.execute(
        select(Student.name, Student.nis, Student.created_at)
        .where(Student.class_id == class_id)
        .order_by(Student.name)
    )
    students = [RosterEntry(name=name, nis=nis, created_at=created_at) for name, nis, created_at in result.all()]
    class_name = await _class_name(db, class_id)
    try:
        sheet = build_roster_sheet(students, class_name)
        content = render_workbook(Workbook(sheets=[sheet]))
    except Exception as e:
        logger.exception("Student roster export failed for class %s", class_id)
        raise ExportError() from e
    filename = clean_name(f"{sheet.name}_{date.today().isoformat()}") + ".xlsx"
    return content, filename
