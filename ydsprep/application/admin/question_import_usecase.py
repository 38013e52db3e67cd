import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from sqlalchemy.orm import Session
from ydsprep.infrastructure.repositories.exam_repo_impl import create_exam
from ydsprep.presentation.schemas.exam_schema import ExamCreate, QuestionCreate
from ydsprep.presentation.schemas.import_schema import QuestionImportRequest

logger = logging.getLogger(__name__)

OPTION_LETTERS = "abcde"

BLOCK_START = re.compile(r"^(?=\d+\.\s)", re.MULTILINE)
QUESTION_LINE = re.compile(r"^(\d+)\.\s*(.+)")
OPTION_LINE = re.compile(r"^([a-eA-E])\)\s*(.+)")
ANSWER_LINE = re.compile(r"^(?:correct|answer|cevap)\s*:\s*([a-e])\b", re.IGNORECASE)


@dataclass
class ParsedQuestion:
    number: int
    question_text: str
    options: List[str]
    correct_answer_index: int
    category: str = "general"
    difficulty: str = "medium"


@dataclass
class ParseResult:
    questions: List[ParsedQuestion] = field(default_factory=list)
    skipped_blocks: List[int] = field(default_factory=list)


def _parse_block(block: str) -> Optional[ParsedQuestion]:
    lines = [line.strip() for line in block.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return None

    header = QUESTION_LINE.match(lines[0])
    if not header:
        return None

    text_parts = [header.group(2).strip()]
    options: List[str] = []
    answer_letter = None

    for line in lines[1:]:
        option = OPTION_LINE.match(line)
        if option:
            options.append(option.group(2).strip())
            continue
        answer = ANSWER_LINE.match(line)
        if answer:
            answer_letter = answer.group(1).lower()
            continue
        if not options and answer_letter is None:
            # Multi-line stem (e.g. a reading passage) before the first option
            text_parts.append(line)

    if len(options) < 2 or answer_letter is None:
        return None
    correct_index = OPTION_LETTERS.index(answer_letter)
    if correct_index >= len(options):
        return None

    return ParsedQuestion(
        number=int(header.group(1)),
        question_text=" ".join(text_parts),
        options=options,
        correct_answer_index=correct_index,
    )


def parse_question_dump(raw_text: str) -> ParseResult:
    """
    Turn a numbered free-text dump into structured questions::

        1. What is the main idea of the passage?
        a) Technology is harmful
        b) Education is important
        Correct: B

    Blocks without text, at least two options and a usable answer letter are
    reported in ``skipped_blocks`` (by question number, or position when the
    number itself is unreadable).
    """
    result = ParseResult()
    blocks = [b for b in BLOCK_START.split(raw_text or "") if b.strip()]
    for position, block in enumerate(blocks, start=1):
        parsed = _parse_block(block)
        if parsed is None:
            header = QUESTION_LINE.match(block.strip())
            result.skipped_blocks.append(int(header.group(1)) if header else position)
            continue
        result.questions.append(parsed)

    logger.info(
        f"Parsed question dump: {len(result.questions)} questions, {len(result.skipped_blocks)} skipped"
    )
    return result


def import_question_dump(db: Session, request: QuestionImportRequest, admin_id: str):
    """Parse a dump and store it as a new exam. Returns (exam, parse_result)."""
    parsed = parse_question_dump(request.raw_text)
    if not parsed.questions:
        raise ValueError("No valid questions found in the submitted text")

    exam = create_exam(
        db,
        ExamCreate(
            title=request.title,
            description=request.description,
            duration_minutes=request.duration_minutes,
            passing_score=request.passing_score,
            questions=[
                QuestionCreate(
                    question_text=q.question_text,
                    options=q.options,
                    correct_answer_index=q.correct_answer_index,
                    category=q.category,
                    difficulty=q.difficulty,
                )
                for q in parsed.questions
            ],
        ),
        admin_id,
    )
    logger.info(f"Admin {admin_id} imported {len(parsed.questions)} questions into exam {exam.id}")
    return exam, parsed
