import pandas as pd
from ydsprep.infrastructure.repositories.exam_repo_impl import add_question, get_exam_by_id
from ydsprep.presentation.schemas.exam_schema import QuestionCreate
from sqlalchemy.orm import Session
import logging
import io

logger = logging.getLogger(__name__)

OPTION_COLUMNS = ["option1", "option2", "option3", "option4", "option5"]
REQUIRED_COLUMNS = ["question_text", "option1", "option2", "option3", "option4", "correct_answer"]


def _resolve_correct_index(correct_val: str, options: list) -> int:
    # correct_answer can be 1..n (as index), a letter A..E, or the option text itself
    try:
        number = float(correct_val)
    except ValueError:
        number = None
    if number is not None and number.is_integer() and 1 <= number <= len(options):
        return int(number) - 1

    if len(correct_val) == 1 and correct_val.upper() in "ABCDE":
        return "ABCDE".index(correct_val.upper())

    for i, opt in enumerate(options):
        if opt == correct_val:
            return i
    return -1


def process_bulk_upload(db: Session, exam_id: int, file_content: bytes, filename: str, admin_id: str):
    try:
        logger.info(f"Processing bulk upload: {filename} for exam {exam_id} by admin {admin_id}")
        get_exam_by_id(db, exam_id)

        if filename.endswith('.csv'):
            df = pd.read_csv(io.BytesIO(file_content))
        elif filename.endswith(('.xlsx', '.xls')):
            df = pd.read_excel(io.BytesIO(file_content))
        else:
            raise ValueError("Unsupported file format. Please upload CSV or XLSX.")

        # Clean column names
        df.columns = [str(c).strip().lower() for c in df.columns]

        for col in REQUIRED_COLUMNS:
            if col not in df.columns:
                raise ValueError(f"Missing required column: {col}")

        inserted = 0
        failed = 0
        errors = []

        for index, row in df.iterrows():
            try:
                options = [
                    str(row[col]).strip()
                    for col in OPTION_COLUMNS
                    if col in df.columns and not pd.isna(row[col]) and str(row[col]).strip()
                ]
                if pd.isna(row['question_text']):
                    raise ValueError("Question text is empty")
                if pd.isna(row['correct_answer']):
                    raise ValueError("Correct answer is empty")

                correct_val = str(row['correct_answer']).strip()
                correct_idx = _resolve_correct_index(correct_val, options)
                if correct_idx < 0 or correct_idx >= len(options):
                    raise ValueError(
                        f"Correct answer '{correct_val}' not valid (must be 1-{len(options)}, a letter or match an option text)"
                    )

                explanation_val = None
                if 'explanation' in df.columns and not pd.isna(row['explanation']):
                    explanation_val = str(row['explanation'])

                question = QuestionCreate(
                    question_text=str(row['question_text']),
                    options=options,
                    correct_answer_index=correct_idx,
                    explanation=explanation_val,
                )

                add_question(db, exam_id, question, commit=False)
                inserted += 1
            except Exception as e:
                failed += 1
                errors.append(f"Row {index + 2}: {str(e)}")

        db.commit()
        logger.info(f"Bulk upload finished. Inserted: {inserted}, Failed: {failed}")
        return {
            "total_rows": len(df),
            "inserted": inserted,
            "failed": failed,
            "errors": errors
        }

    except Exception as e:
        logger.error(f"Bulk upload process failed: {e}", exc_info=True)
        raise
