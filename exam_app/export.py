import json
from datetime import date
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from exam_app.config import subject_display_name

SHEET_TITLE = "Hasil Test"

# (header, width)
COLUMNS = [
    ("NIS", 10),
    ("Nama Siswa", 20),
    ("Kelas", 15),
    ("Mata Pelajaran", 20),
    ("Nilai Akhir", 12),
    ("Total Score", 12),
    ("Max Score", 12),
    ("Waktu Digunakan", 15),
    ("Tanggal Test", 20),
    ("Detail Jawaban", 50),
]


def format_time(seconds) -> str:
    """
    초 → HH:MM:SS
    """
    seconds = int(seconds or 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"hasil-test-{today.isoformat()}.xlsx"


def _result_row(result) -> list:
    tested_at = result.timestamp.strftime("%d/%m/%Y %H:%M:%S") if result.timestamp else ""
    return [
        result.student_nis,
        result.student_name,
        result.student_class,
        subject_display_name(result.subject),
        f"{result.final_score:.2f}",
        result.total_score,
        result.max_score,
        format_time(result.time_used),
        tested_at,
        json.dumps(result.question_scores, ensure_ascii=False),
    ]


def build_results_workbook(results) -> bytes:
    """
    결과 목록을 xlsx 바이트로 만든다. 시트 하나, 헤더 굵게, 열 너비 고정.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append([header for header, _ in COLUMNS])

    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center")
    for col, (_, width) in enumerate(COLUMNS, start=1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.alignment = center
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.freeze_panes = "A2"

    for result in results:
        ws.append(_result_row(result))

    output = BytesIO()
    wb.save(output)
    return output.getvalue()
