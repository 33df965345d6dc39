"""Question sources that load a question bank from disk.

Plain-text format (repeat blocks separated by blank lines or '---'):

    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    A: First option text
    B: Second option text
    C: ...                 (two or more options, lettered in order)
    CORRECT: B

Option letters skip Q, which is reserved for the prompt: a block may hold
up to 25 options and the option after P is R.

JSON format: a list of documents as exported from a document store::

    [{"id": "os-1", "question": "...", "options": ["...", "..."], "correctIndex": 1}]

``id`` is optional. Sources only check structure; whether a question is
actually usable (distinct options, index in range, ...) is decided by the
question pool when it loads them.
"""

from __future__ import annotations

import json
import string
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from quizzy.core.errors import QuestionImportError, SourceUnavailableError
from quizzy.core.models import Question

# "Q:" always starts the prompt, so Q is never an option letter.
_OPTION_ORDER = [letter for letter in string.ascii_uppercase if letter != "Q"]


class QuestionSource(Protocol):
    def load_questions(self) -> list[Question]: ...


class TextQuestionSource:
    """Loads questions from the plain-text block format."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)

    def load_questions(self) -> list[Question]:
        text = _read_text(self._file_path)
        questions = _parse_quiz_text(text)
        if not questions:
            raise QuestionImportError(f"{self._file_path} did not contain any questions.")
        return questions


class QuestionDocument(BaseModel):
    """One question as stored in a JSON question bank."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | int | None = None
    prompt: str = Field(alias="question")
    options: list[str]
    correct_index: int = Field(alias="correctIndex")

    def to_question(self) -> Question:
        return Question(
            id=str(self.id) if self.id is not None else None,
            prompt=self.prompt,
            options=tuple(self.options),
            correct_index=self.correct_index,
        )


_DOCUMENT_LIST = TypeAdapter(list[QuestionDocument])


class JsonQuestionSource:
    """Loads questions from a JSON list of question documents."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)

    def load_questions(self) -> list[Question]:
        text = _read_text(self._file_path)
        try:
            documents = _DOCUMENT_LIST.validate_python(json.loads(text))
        except json.JSONDecodeError as exc:
            raise QuestionImportError(f"{self._file_path} is not valid JSON: {exc}") from exc
        except ValidationError as exc:
            raise QuestionImportError(f"{self._file_path} has malformed questions: {exc}") from exc
        return [document.to_question() for document in documents]


def source_for_path(file_path: Path) -> QuestionSource:
    """Pick the question source matching the file extension."""
    if Path(file_path).suffix.lower() == ".json":
        return JsonQuestionSource(file_path)
    return TextQuestionSource(file_path)


def _read_text(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnavailableError(f"Could not read question bank {file_path}: {exc}") from exc


def _parse_quiz_text(text: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    if not question_lines:
        raise QuestionImportError("Question text missing (Q: ...)")

    letters = _OPTION_ORDER[: len(options)]
    if sorted(options) != letters:
        raise QuestionImportError(
            f"Options must be lettered consecutively from A; found {', '.join(sorted(options))}."
        )
    if correct_letter is None:
        raise QuestionImportError("CORRECT is required for every question.")
    if correct_letter not in letters:
        raise QuestionImportError(f"CORRECT must be one of {', '.join(letters)}.")

    return Question(
        id=None,
        prompt="\n".join(question_lines).strip(),
        options=tuple(options[letter].strip() for letter in letters),
        correct_index=letters.index(correct_letter),
    )
