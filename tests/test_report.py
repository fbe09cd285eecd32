"""Report aggregation: pure pivot of grade rows into workbook sheets."""

from datetime import datetime

from gradebook.api.v1.export.report import (
    GradeRow,
    RosterEntry,
    build_grade_report,
    build_roster_sheet,
    clean_name,
    excel_sheet_title,
    overall_average,
)


def _rows_by_name(sheet):
    return {row[0]: dict(zip(sheet.columns, row)) for row in sheet.rows}


def _sample_rows():
    return [
        GradeRow("S1", "1001", "Matematika", 80, "task", "Tugas 1"),
        GradeRow("S1", "1001", "Matematika", 90, "task", "Tugas 2"),
        GradeRow("S1", "1001", "Matematika", 70, "final", None),
        GradeRow("S2", None),
    ]


def test_subject_sheet_averages() -> None:
    sheets = build_grade_report(_sample_rows())
    assert [s.name for s in sheets] == ["Ringkasan Nilai", "Matematika"]

    math = sheets[1]
    assert math.columns == [
        "Nama Siswa",
        "NIS",
        "Tugas 1",
        "Tugas 2",
        "Nilai Akhir",
        "Jumlah Nilai Tugas",
        "Rata-rata Tugas",
        "Rata-rata Keseluruhan",
    ]
    rows = _rows_by_name(math)
    s1 = rows["S1"]
    assert s1["NIS"] == "1001"
    assert s1["Tugas 1"] == "80.0"
    assert s1["Nilai Akhir"] == "70.0"
    assert s1["Jumlah Nilai Tugas"] == "170.0"
    assert s1["Rata-rata Tugas"] == "85.0"
    assert s1["Rata-rata Keseluruhan"] == "80.5"

    # Students without grades still get a line, with no value everywhere
    s2 = rows["S2"]
    assert s2["NIS"] == "-"
    assert all(s2[column] == "-" for column in math.columns[2:])


def test_statistics_row_ignores_missing_values() -> None:
    math = build_grade_report(_sample_rows())[1]
    stats = math.rows[-1]
    assert stats[:2] == ["STATISTIK KELAS", "-"]
    stats_by_column = dict(zip(math.columns, stats))
    assert stats_by_column["Tugas 1"] == "80.0"
    assert stats_by_column["Rata-rata Keseluruhan"] == "80.5"

    only_missing = build_grade_report([GradeRow("A"), GradeRow("B")], subjects=["IPAS"])[1]
    assert only_missing.rows[-1][2:] == ["-", "-", "-", "-"]


def test_summary_sheet() -> None:
    rows = _sample_rows() + [
        GradeRow("S1", "1001", "Bahasa Indonesia", 60, "task", None),
        GradeRow("S2", None, "Bahasa Indonesia", 90, "final", None),
    ]
    summary = build_grade_report(rows)[0]
    assert summary.columns == [
        "Nama Siswa",
        "NIS",
        "Matematika",
        "Bahasa Indonesia",
        "Rata-rata Keseluruhan",
        "Jumlah Mapel",
    ]
    by_name = _rows_by_name(summary)
    # Final grade where present, otherwise the subject average
    assert by_name["S1"]["Matematika"] == "70.0"
    assert by_name["S1"]["Bahasa Indonesia"] == "60.0"
    assert by_name["S1"]["Rata-rata Keseluruhan"] == "65.0"
    assert by_name["S1"]["Jumlah Mapel"] == 2
    assert by_name["S2"]["Matematika"] == "-"
    assert by_name["S2"]["Jumlah Mapel"] == 1

    class_row = by_name["RATA-RATA KELAS"]
    assert class_row["Matematika"] == "70.0"
    assert class_row["Bahasa Indonesia"] == "75.0"
    assert class_row["Rata-rata Keseluruhan"] == "77.5"
    assert class_row["Jumlah Mapel"] == "Total"


def test_unnamed_task_uses_default_column() -> None:
    math = build_grade_report([GradeRow("S1", None, "Matematika", 75, "task", None)])[1]
    assert "Tugas" in math.columns
    assert _rows_by_name(math)["S1"]["Nilai Akhir"] == "-"
    assert _rows_by_name(math)["S1"]["Rata-rata Keseluruhan"] == "75.0"


def test_empty_report_has_placeholder() -> None:
    sheets = build_grade_report([])
    assert len(sheets) == 1
    summary = sheets[0]
    assert summary.name == "Ringkasan Nilai"
    assert len(summary.rows) == 1
    assert summary.rows[0][:2] == ["Belum ada data", "-"]


def test_subject_order_and_extra_subjects() -> None:
    rows = [
        GradeRow("A", None, "Seni/Musik", 80, "final"),
        GradeRow("A", None, "Bahasa Indonesia", 70, "final"),
    ]
    names = [s.name for s in build_grade_report(rows, subjects=["Penjas", "Bahasa Indonesia"])]
    assert names == ["Ringkasan Nilai", "SeniMusik", "Bahasa Indonesia", "Penjas"]


def test_overall_average_weighting() -> None:
    assert overall_average(85, 70) == 85 * 0.7 + 70 * 0.3
    assert overall_average(85, None) == 85
    assert overall_average(None, 70) == 70
    assert overall_average(None, None) is None


def test_name_cleaning() -> None:
    assert clean_name("IPA: [Kelas] 5?") == "IPA Kelas 5"
    assert clean_name("///") == "Unknown"
    assert clean_name(None) == "Unknown"
    assert len(excel_sheet_title("Pendidikan Agama dan Budi Pekerti Lanjutan")) == 31


def test_roster_sheet() -> None:
    sheet = build_roster_sheet(
        [
            RosterEntry("Ani", "123", datetime(2024, 7, 15, 8, 30)),
            RosterEntry("Budi", None, None),
        ],
        "Kelas 1",
    )
    assert sheet.name == "Daftar_Siswa_Kelas 1"
    assert sheet.columns == ["No", "Nama Siswa", "NIS", "Tanggal Daftar"]
    assert sheet.rows == [[1, "Ani", "123", "15/7/2024"], [2, "Budi", "-", "-"]]

    empty = build_roster_sheet([], "Kelas 2")
    assert empty.rows == [[1, "Belum ada data siswa", "-", "-"]]
