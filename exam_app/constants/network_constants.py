"""Network configuration constants for the exam server."""

import os

DEFAULT_HOST: str = os.getenv("EXAM_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.getenv("EXAM_PORT", "3000"))
