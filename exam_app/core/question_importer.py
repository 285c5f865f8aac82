"""Utilities for reading the question asset from disk.

File format (JSON object, both arrays optional):

    {
      "choiceQuestions": [
        {"question": "Which gas do plants absorb?",
         "options": ["A. Oxygen", "B. Carbon dioxide", "C. Nitrogen"],
         "answer": "B"}
      ],
      "judgeQuestions": [
        {"question": "Water boils at 100 degrees at sea level.", "answer": true}
      ]
    }

The importer only reads and decodes the file. Interpreting the entries is left
to the registry, which accepts incomplete entries without complaint.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class QuestionImportError(Exception):
    """Raised when the question asset cannot be read or decoded."""


def load_question_data(file_path: Path) -> dict[str, Any]:
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise QuestionImportError(f"Could not read question file {file_path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionImportError(f"Question file {file_path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        logger.warning("Question file %s does not hold a JSON object; treating it as empty", file_path)
        return {}
    return data
