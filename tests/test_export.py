import io
from datetime import date

import pytest
from httpx import AsyncClient
from openpyxl import load_workbook

from gradebook.api.v1.export.service import XLSX_MEDIA_TYPE, grade_report_filename


def _sheet_values(workbook, title):
    return [list(row) for row in workbook[title].iter_rows(values_only=True)]


@pytest.mark.asyncio
async def test_export_grades_excel(client: AsyncClient, auth_headers, add_student, subject_id) -> None:
    s1 = await add_student("Ani", nis="1001")
    await add_student("Budi")
    math_id = await subject_id("Matematika")
    task = await client.post("/api/v1/tasks", json={"name": "Tugas 1", "subject_id": math_id}, headers=auth_headers)
    base = {"student_id": s1.id, "subject_id": math_id, "semester": 1, "academic_year": "2024/2025"}
    await client.post("/api/v1/grades", json={**base, "grade_value": 80, "task_id": task.json()["taskId"]}, headers=auth_headers)
    await client.post("/api/v1/grades", json={**base, "grade_value": 70}, headers=auth_headers)
    # Another semester, filtered out below
    await client.post("/api/v1/grades", json={**base, "grade_value": 10, "semester": 2}, headers=auth_headers)

    response = await client.get(
        "/api/v1/export/excel",
        params={"semester": 1, "academic_year": "2024/2025"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="Nilai_Per_Mapel_Kelas 1_Sem1_20242025_')
    assert disposition.endswith('.xlsx"')

    wb = load_workbook(io.BytesIO(response.content))
    assert wb.sheetnames == ["Ringkasan Nilai", "Matematika"]

    summary = _sheet_values(wb, "Ringkasan Nilai")
    assert summary[0] == ["Nama Siswa", "NIS", "Matematika", "Rata-rata Keseluruhan", "Jumlah Mapel"]
    assert summary[1] == ["Ani", "1001", "70.0", "70.0", 1]
    # Student without grades in the period stays in the roster
    assert summary[2] == ["Budi", "-", "-", "-", 0]
    assert summary[3][0] == "RATA-RATA KELAS"

    math = _sheet_values(wb, "Matematika")
    assert math[0][:5] == ["Nama Siswa", "NIS", "Tugas 1", "Nilai Akhir", "Jumlah Nilai Tugas"]
    assert math[1] == ["Ani", "1001", "80.0", "70.0", "80.0", "80.0", "77.0"]
    assert math[-1][0] == "STATISTIK KELAS"
    assert wb["Matematika"].column_dimensions["A"].width == 25


@pytest.mark.asyncio
async def test_export_without_data(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/export/excel", headers=auth_headers)
    assert response.status_code == 200
    wb = load_workbook(io.BytesIO(response.content))
    assert wb.sheetnames == ["Ringkasan Nilai"]
    assert _sheet_values(wb, "Ringkasan Nilai")[1][:2] == ["Belum ada data", "-"]


@pytest.mark.asyncio
async def test_export_students_excel(client: AsyncClient, auth_headers, add_student) -> None:
    await add_student("Zaki", nis="77")
    await add_student("Ani")

    response = await client.get("/api/v1/export/students/excel", headers=auth_headers)
    assert response.status_code == 200
    assert "Daftar_Siswa_Kelas 1_" in response.headers["content-disposition"]

    wb = load_workbook(io.BytesIO(response.content))
    rows = _sheet_values(wb, "Daftar_Siswa_Kelas 1")
    assert rows[0] == ["No", "Nama Siswa", "NIS", "Tanggal Daftar"]
    assert [r[:3] for r in rows[1:]] == [[1, "Ani", "-"], [2, "Zaki", "77"]]


def test_grade_report_filename() -> None:
    today = date(2025, 3, 4)
    assert grade_report_filename("Kelas 2", None, None, today=today) == "Nilai_Per_Mapel_Kelas 2_2025_2025-03-04.xlsx"
    assert (
        grade_report_filename("Kelas 2", 2, "2024/2025", today=today)
        == "Nilai_Per_Mapel_Kelas 2_Sem2_20242025_2025-03-04.xlsx"
    )
