import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.models import Grade, Student, Task


def _grade(student_id: int, subject_id: int, value: float, task_id=None) -> dict:
    return {
        "student_id": student_id,
        "subject_id": subject_id,
        "task_id": task_id,
        "grade_value": value,
        "semester": 1,
        "academic_year": "2024/2025",
    }


@pytest.mark.asyncio
async def test_student_crud(client: AsyncClient, auth_headers) -> None:
    created = await client.post("/api/v1/students", json={"name": "Putri", "nis": "2024001"}, headers=auth_headers)
    assert created.status_code == 201
    student_id = created.json()["studentId"]

    listing = await client.get("/api/v1/students", headers=auth_headers)
    assert [s["name"] for s in listing.json()] == ["Putri"]

    updated = await client.put(
        f"/api/v1/students/{student_id}", json={"name": "Putri Ayu", "nis": "2024001"}, headers=auth_headers
    )
    assert updated.status_code == 200

    detail = await client.get(f"/api/v1/students/{student_id}", headers=auth_headers)
    assert detail.status_code == 200
    assert detail.json()["student"]["name"] == "Putri Ayu"
    assert detail.json()["grades"] == []

    stats = await client.get("/api/v1/classes/my-class/stats", headers=auth_headers)
    assert stats.json() == {"student_count": 1}


@pytest.mark.asyncio
async def test_student_duplicate_rules(client: AsyncClient, login_teacher, add_student) -> None:
    headers = await login_teacher("guru1", class_id=1)
    await add_student("Rina", class_id=1, nis="111")
    await add_student("Sari", class_id=2)

    same_class = await client.post("/api/v1/students", json={"name": "Rina"}, headers=headers)
    assert same_class.status_code == 400
    assert same_class.json()["detail"] == "Nama siswa sudah ada di kelas ini"

    same_nis = await client.post("/api/v1/students", json={"name": "Tono", "nis": "111"}, headers=headers)
    assert same_nis.status_code == 400
    assert same_nis.json()["detail"] == "NIS sudah digunakan"

    needs_nis = await client.post("/api/v1/students", json={"name": "Sari"}, headers=headers)
    assert needs_nis.status_code == 400
    assert needs_nis.json()["detail"] == (
        "Nama siswa sudah ada di kelas lain. NIS harus diisi untuk membedakan siswa."
    )

    with_nis = await client.post("/api/v1/students", json={"name": "Sari", "nis": "222"}, headers=headers)
    assert with_nis.status_code == 201

    bad_nis = await client.post("/api/v1/students", json={"name": "Umar", "nis": "12a"}, headers=headers)
    assert bad_nis.status_code == 400

    no_name = await client.post("/api/v1/students", json={"name": "  "}, headers=headers)
    assert no_name.status_code == 400


@pytest.mark.asyncio
async def test_student_of_other_class_is_hidden(client: AsyncClient, auth_headers, add_student) -> None:
    other = await add_student("Vina", class_id=3)
    assert (await client.get(f"/api/v1/students/{other.id}", headers=auth_headers)).status_code == 404
    assert (await client.delete(f"/api/v1/students/{other.id}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_delete_student_removes_all_grades(
    client: AsyncClient, db_session: AsyncSession, auth_headers, add_student, subject_id
) -> None:
    keep = await add_student("Wati")
    remove = await add_student("Yusuf")
    math_id = await subject_id("Matematika")
    indo_id = await subject_id("Bahasa Indonesia")
    for sid in (keep.id, remove.id):
        await client.post("/api/v1/grades", json=_grade(sid, math_id, 80), headers=auth_headers)
        await client.post("/api/v1/grades", json=_grade(sid, indo_id, 75), headers=auth_headers)

    response = await client.delete(f"/api/v1/students/{remove.id}", headers=auth_headers)
    assert response.status_code == 200

    student_ids = (await db_session.execute(select(Grade.student_id))).scalars().all()
    assert student_ids == [keep.id, keep.id]
    assert (await db_session.execute(select(Student.id).where(Student.id == remove.id))).first() is None


@pytest.mark.asyncio
async def test_task_crud_and_ownership(client: AsyncClient, auth_headers, subject_id) -> None:
    math_id = await subject_id("Matematika")
    other_subject = await subject_id("Matematika", class_id=5)

    missing = await client.post("/api/v1/tasks", json={"name": "PR"}, headers=auth_headers)
    assert missing.status_code == 400
    foreign = await client.post("/api/v1/tasks", json={"name": "PR", "subject_id": other_subject}, headers=auth_headers)
    assert foreign.status_code == 404

    created = await client.post(
        "/api/v1/tasks",
        json={"name": "PR 1", "description": "Halaman 10", "subject_id": math_id, "due_date": "2024-08-01"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    task_id = created.json()["taskId"]

    task = await client.get(f"/api/v1/tasks/{task_id}", headers=auth_headers)
    assert task.json()["subject_name"] == "Matematika"
    assert task.json()["due_date"] == "2024-08-01"

    updated = await client.put(f"/api/v1/tasks/{task_id}", json={"name": "PR 1 (revisi)"}, headers=auth_headers)
    assert updated.status_code == 200
    blank = await client.put(f"/api/v1/tasks/{task_id}", json={"name": ""}, headers=auth_headers)
    assert blank.status_code == 400

    by_subject = await client.get(f"/api/v1/tasks/by-subject/{math_id}", headers=auth_headers)
    assert [t["name"] for t in by_subject.json()] == ["PR 1 (revisi)"]
    filtered = await client.get("/api/v1/tasks", params={"subject_id": math_id}, headers=auth_headers)
    assert len(filtered.json()) == 1


@pytest.mark.asyncio
async def test_delete_task_removes_only_its_grades(
    client: AsyncClient, db_session: AsyncSession, auth_headers, add_student, subject_id
) -> None:
    student = await add_student("Zahra")
    math_id = await subject_id("Matematika")
    t1 = (await client.post("/api/v1/tasks", json={"name": "T1", "subject_id": math_id}, headers=auth_headers)).json()["taskId"]
    t2 = (await client.post("/api/v1/tasks", json={"name": "T2", "subject_id": math_id}, headers=auth_headers)).json()["taskId"]
    await client.post("/api/v1/grades", json=_grade(student.id, math_id, 80, task_id=t1), headers=auth_headers)
    await client.post("/api/v1/grades", json=_grade(student.id, math_id, 90, task_id=t2), headers=auth_headers)
    await client.post("/api/v1/grades", json=_grade(student.id, math_id, 85), headers=auth_headers)

    task_grades = await client.get(f"/api/v1/tasks/{t1}/grades", headers=auth_headers)
    assert task_grades.status_code == 200
    assert [(s["student_name"], s["grade_value"]) for s in task_grades.json()["students"]] == [("Zahra", 80)]

    response = await client.delete(f"/api/v1/tasks/{t1}", headers=auth_headers)
    assert response.status_code == 200

    remaining = (await db_session.execute(select(Grade.task_id).order_by(Grade.id))).scalars().all()
    assert remaining == [t2, None]
    assert (await db_session.execute(select(Task.id))).scalars().all() == [t2]
