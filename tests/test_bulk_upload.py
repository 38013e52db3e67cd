"""Tests for spreadsheet bulk upload of exam questions."""

import pytest

from ydsprep.application.admin.bulk_upload_usecase import process_bulk_upload
from ydsprep.infrastructure.repositories.exam_repo_impl import create_exam, get_exam_by_id
from ydsprep.presentation.schemas.exam_schema import ExamCreate

CSV = b"""question_text,option1,option2,option3,option4,correct_answer,explanation
Pick two,one,two,three,four,2,because
Pick by letter,one,two,three,four,D,
Pick by text,red,green,blue,black,blue,
Bad answer,one,two,three,four,9,
"""


@pytest.fixture
def exam(db):
    return create_exam(db, ExamCreate(title="Upload target"), "admin-1")


def test_valid_rows_are_inserted_and_bad_rows_reported(db, exam):
    result = process_bulk_upload(db, exam.id, CSV, "questions.csv", "admin-1")

    assert result["total_rows"] == 4
    assert result["inserted"] == 3
    assert result["failed"] == 1
    assert result["errors"][0].startswith("Row 5:")

    questions = get_exam_by_id(db, exam.id).questions
    assert [q.correct_answer_index for q in questions] == [1, 3, 2]
    assert questions[0].explanation == "because"
    assert [q.order_index for q in questions] == [0, 1, 2]


def test_missing_column_is_rejected(db, exam):
    with pytest.raises(ValueError, match="correct_answer"):
        process_bulk_upload(db, exam.id, b"question_text,option1,option2,option3,option4\nq,a,b,c,d\n", "q.csv", "admin-1")


def test_unsupported_extension_is_rejected(db, exam):
    with pytest.raises(ValueError):
        process_bulk_upload(db, exam.id, b"{}", "questions.json", "admin-1")


def test_unknown_exam_is_rejected(db):
    with pytest.raises(ValueError):
        process_bulk_upload(db, 404, CSV, "questions.csv", "admin-1")
