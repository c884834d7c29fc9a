"""
Configuration settings for certprep-core.

This module provides the Config class with all settings.
When installed as a package, paths are relative to the package location
or can be overridden via environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Try multiple locations for .env
for env_path in [
    Path.cwd() / ".env",  # Current working directory
    Path(__file__).parent.parent / ".env",  # Package root (when running from source)
    Path.home() / ".certprep" / ".env",  # User config directory
]:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        break


def _get_base_dir():
    """Get base directory, preferring environment variable or user config."""
    if os.getenv("CERTPREP_BASE_DIR"):
        return Path(os.getenv("CERTPREP_BASE_DIR"))
    # Default: ~/.certprep for installed package, or package parent for dev
    user_dir = Path.home() / ".certprep"
    if user_dir.exists():
        return user_dir
    return Path(__file__).parent.parent


class Config:
    """Main configuration class for certprep-core."""

    # Paths - can be overridden via CERTPREP_BASE_DIR env var
    BASE_DIR = _get_base_dir()
    DATA_DIR = BASE_DIR / "data"
    DB_PATH = Path(os.getenv("CERTPREP_DB_PATH", str(DATA_DIR / "certprep.db")))

    # Exam catalog ships next to this module unless overridden
    EXAM_PROFILES_PATH = Path(
        os.getenv("CERTPREP_EXAM_PROFILES", str(Path(__file__).parent / "exam_profiles.yaml"))
    )

    # Sampling
    DEFAULT_TOTAL_QUESTIONS = int(os.getenv("CERTPREP_DEFAULT_TOTAL_QUESTIONS", "180"))
    EFFICIENT_FRACTION = float(os.getenv("CERTPREP_EFFICIENT_FRACTION", "0.3"))
    PREP_BASE_QUESTIONS = 100  # prep mode counts are weight percentages

    # Style distribution tracking
    SESSION_TTL_SECONDS = int(os.getenv("CERTPREP_SESSION_TTL", "7200"))  # 2 hours
    STYLE_DEVIATION_THRESHOLD = float(os.getenv("CERTPREP_STYLE_DEVIATION", "0.15"))

    # Study sessions
    DEFAULT_QUESTIONS_PER_OBJECTIVE = int(os.getenv("CERTPREP_QUESTIONS_PER_OBJECTIVE", "10"))
    DEFAULT_MASTERY_THRESHOLD = float(os.getenv("CERTPREP_MASTERY_THRESHOLD", "80"))
    MIN_ATTEMPTS_FOR_MASTERY = 3
    MOCK_BREAK_SECONDS = int(os.getenv("CERTPREP_MOCK_BREAK_SECONDS", "900"))  # 15 minutes
    TIME_WARNING_SECONDS = 1800
    TIME_CRITICAL_SECONDS = 300

    # Score prediction
    TARGET_SECONDS_PER_QUESTION = float(os.getenv("CERTPREP_TARGET_PACE", "90"))
    REALTIME_REFRESH_INTERVAL = int(os.getenv("CERTPREP_REFRESH_INTERVAL", "5"))
    REALTIME_DAMPING = 0.1

    # FSRS flashcard scheduling
    FSRS_DESIRED_RETENTION = float(os.getenv("CERTPREP_FSRS_RETENTION", "0.9"))

    # Logging
    LOG_LEVEL = os.getenv("CERTPREP_LOG_LEVEL", "WARNING")

    @classmethod
    def ensure_dirs(cls):
        """Create necessary directories if they don't exist."""
        for path in [cls.DATA_DIR, cls.DB_PATH.parent]:
            path.mkdir(parents=True, exist_ok=True)
