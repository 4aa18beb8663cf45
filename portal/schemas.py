"""
Description:
Request and domain schemas for the feedback portal.

Feedback questions are a tagged variant on ``question_type``: free-text
questions carry no options, multiple-choice questions carry a non-empty list
of distinct options. Student answers are checked against the question set in
an explicit validation pass (validate_answers).

Dependencies:
- pydantic: For data validation and discriminated unions.
"""
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from config import (
    MAX_COMMENT_LENGTH,
    MAX_QUESTION_LENGTH,
    MAX_RATING,
    MAX_SEMESTER,
    MIN_RATING,
    MIN_SEMESTER,
)


class QuestionBase(BaseModel):
    id: Optional[int] = None
    question_text: str = Field(min_length=1, max_length=MAX_QUESTION_LENGTH)
    batch_id: int
    semester_number: int = Field(ge=MIN_SEMESTER, le=MAX_SEMESTER)

    @field_validator('question_text')
    @classmethod
    def strip_text(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Question text is required")
        return value


class FreeTextQuestion(QuestionBase):
    question_type: Literal['text']

    @property
    def options(self):
        return None


class MultipleChoiceQuestion(QuestionBase):
    question_type: Literal['multiple_choice']
    options: List[str] = Field(min_length=1)

    @field_validator('options')
    @classmethod
    def clean_options(cls, value):
        cleaned = [option.strip() for option in value if option and option.strip()]
        if not cleaned:
            raise ValueError("Multiple choice questions need at least one option")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Options must be distinct")
        return cleaned


FeedbackQuestion = Annotated[
    Union[FreeTextQuestion, MultipleChoiceQuestion],
    Field(discriminator='question_type'),
]

question_adapter = TypeAdapter(FeedbackQuestion)


def parse_question(data):
    """Validate a question payload or stored row into its concrete kind."""
    return question_adapter.validate_python(data)


class AdditionalAnswer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias='questionId')
    question_text: Optional[str] = Field(default=None, alias='questionText')
    answer: Union[str, List[str]]


class FeedbackSubmission(BaseModel):
    """Body of POST /feedback."""
    model_config = ConfigDict(populate_by_name=True)

    class_id: int = Field(alias='classId')
    batch_id: Optional[int] = Field(default=None, alias='batchId')
    semester_number: Optional[int] = Field(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER,
                                           alias='semesterNumber')
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING, strict=True)
    comment: Optional[str] = Field(default=None, max_length=MAX_COMMENT_LENGTH)
    additional_feedback: List[AdditionalAnswer] = Field(default_factory=list, alias='additionalFeedback')

    @field_validator('comment')
    @classmethod
    def blank_comment_is_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value


def validate_answers(questions, answers):
    """
    Check submitted answers against the student's question set.

    Every question must be answered; a multiple-choice answer must be one of
    its options. Answers for unknown questions are rejected. Returns the
    answers in question order with the stored question text, ready to persist.
    """
    errors = []
    by_id = {answer.question_id: answer for answer in answers}
    known_ids = {question.id for question in questions}

    for question_id in by_id:
        if question_id not in known_ids:
            errors.append(f"Question {question_id} does not apply to this student")

    cleaned = []
    for question in questions:
        answer = by_id.get(question.id)
        value = answer.answer if answer else None
        if isinstance(value, list):
            value = [item.strip() for item in value if item and item.strip()]
        elif isinstance(value, str):
            value = value.strip()

        if not value:
            errors.append(f"Please provide an answer for: {question.question_text}")
            continue

        if isinstance(question, MultipleChoiceQuestion):
            chosen = value if isinstance(value, list) else [value]
            invalid = [item for item in chosen if item not in question.options]
            if invalid:
                errors.append(f"Invalid option for: {question.question_text}")
                continue
        elif isinstance(value, list):
            errors.append(f"Expected a text answer for: {question.question_text}")
            continue

        cleaned.append({
            'question_id': question.id,
            'question_text': question.question_text,
            'answer': value,
        })

    return cleaned, errors


class DailySubject(BaseModel):
    """One scheduled session of today's timetable with its feedback state."""
    timetable_id: Optional[int] = None
    id: int
    name: str
    period: Optional[int] = None
    start_time: str
    end_time: str
    batch_id: Optional[int] = None
    semester_number: Optional[int] = None
    already_submitted: bool = False


class GateState(BaseModel):
    active_subject: Optional[DailySubject] = None
    already_submitted: bool = False


def describe_errors(exc):
    """Flatten a pydantic ValidationError into "field: message" strings."""
    details = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error['loc'])
        details.append(f"{location}: {error['msg']}" if location else error['msg'])
    return details
