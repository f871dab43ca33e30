"""
Question bank loaded from JSON.

The file holds either a list of question objects or {"questions": [...]}.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from loguru import logger

from adaptest.errors import QuestionFormatError
from adaptest.models import Question, Topic


class QuestionBank(Sequence[Question]):
    """Read-only collection of questions, filterable by topic."""

    def __init__(self, questions: Iterable[Question] = ()):
        self._questions = tuple(questions)

    @classmethod
    def from_json(cls, path: str | Path) -> "QuestionBank":
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("questions", [])
        if not isinstance(data, list):
            raise QuestionFormatError(f"{path.name}: expected a list of questions")

        questions = [Question.from_dict(item) for item in data]
        logger.info(f"Loaded {len(questions)} questions from {path}")
        return cls(questions)

    def by_topic(self, topic: Topic | str) -> list[Question]:
        topic = Topic(topic)
        return [q for q in self._questions if q.topic == topic]

    def __getitem__(self, index):
        return self._questions[index]

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)
