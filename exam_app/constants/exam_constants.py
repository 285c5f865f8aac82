"""Exam rules shared by the registry, the score store and the reports."""

import os
from pathlib import Path

MAX_SUBMISSIONS: int = 3
MIN_SCORE: float = 0
MAX_SCORE: float = 100
PASS_SCORE: float = 60

QUESTION_KIND_CHOICE: str = "choice"
QUESTION_KIND_JUDGE: str = "judge"
QUESTION_KIND_ALL: str = "all"

_PACKAGE_DATA = Path(__file__).resolve().parent.parent / "data"

DATA_DIR: Path = Path(os.getenv("EXAM_DATA_DIR", "."))
QUESTIONS_FILE: Path = Path(os.getenv("EXAM_QUESTIONS_FILE", str(_PACKAGE_DATA / "questions.json")))
SCORES_FILE_NAME: str = "scores.json"
BACKUP_FILE_NAME: str = "scores_backup.json"
# Seconds a writer waits for the score file before giving up.
WRITE_TIMEOUT_SECONDS: float = float(os.getenv("EXAM_WRITE_TIMEOUT", "5"))
