"""Admin authentication settings."""

import os

ADMIN_PASSWORD: str = os.getenv("EXAM_ADMIN_PASSWORD", "admin123")
JWT_SECRET: str = os.getenv("EXAM_JWT_SECRET", "exam_system_secret_key")
JWT_ALGORITHM: str = "HS256"
TOKEN_TTL_HOURS: int = int(os.getenv("EXAM_TOKEN_TTL_HOURS", "12"))
ADMIN_ROLE: str = "admin"
