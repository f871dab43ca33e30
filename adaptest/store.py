"""
Attempt persistence.

Attempts are stored as JSON files in ~/.adaptest/attempts/ by default,
one file per attempt named {attempt_id}.json.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Protocol

from loguru import logger

from adaptest.errors import QuestionFormatError
from adaptest.models import Attempt

# Default attempt directory
ATTEMPT_DIR = Path.home() / ".adaptest" / "attempts"


class AttemptStore(Protocol):
    """Anything that accepts finished attempts."""

    def add_test_attempt(self, attempt: Attempt) -> None:
        ...


class InMemoryAttemptStore:
    """Keeps attempts in a list. Used by tests and one-off sessions."""

    def __init__(self):
        self.attempts: list[Attempt] = []

    def add_test_attempt(self, attempt: Attempt) -> None:
        self.attempts.append(attempt)

    def list_attempts(self) -> list[Attempt]:
        return sorted(self.attempts, key=lambda a: a.completed_at, reverse=True)


class JsonAttemptStore:
    """
    Stores attempts as JSON files.

    Corrupt files are skipped when listing.
    """

    def __init__(self, attempt_dir: Optional[Path] = None):
        self.attempt_dir = Path(attempt_dir) if attempt_dir else ATTEMPT_DIR
        self.attempt_dir.mkdir(parents=True, exist_ok=True)

    def add_test_attempt(self, attempt: Attempt) -> None:
        filepath = self.attempt_dir / f"{attempt.attempt_id}.json"
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(attempt.to_dict(), f, indent=2)
        logger.debug(f"Saved attempt to {filepath}")

    def load(self, attempt_id: str) -> Optional[Attempt]:
        """Load a specific attempt by ID."""
        filepath = self.attempt_dir / f"{attempt_id}.json"
        if not filepath.exists():
            return None

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Attempt.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, QuestionFormatError) as e:
            logger.warning(f"Could not read attempt {attempt_id}: {e}")
            return None

    def list_attempts(self, student_id: Optional[str] = None) -> list[Attempt]:
        """All readable attempts, newest first."""
        attempts = []
        for filepath in self.attempt_dir.glob("*.json"):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)
                attempt = Attempt.from_dict(data)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, QuestionFormatError):
                logger.debug(f"Skipping unreadable attempt file {filepath.name}")
                continue
            if student_id is None or attempt.student_id == student_id:
                attempts.append(attempt)

        return sorted(attempts, key=lambda a: a.completed_at, reverse=True)
