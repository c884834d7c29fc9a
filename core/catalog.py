"""
Exam profile catalog.

Loads ExamProfile definitions from a YAML file (see
config/exam_profiles.yaml for the layout). Profiles are parsed once and
kept in memory; lookups are thread-safe.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config import Config
from core.dto.exam import (
    DifficultyTag,
    ExamConstraints,
    ExamProfile,
    Objective,
    ObjectiveLevel,
    StudySettings,
)
from core.errors import ConfigurationError
from core.question_patterns import parse_style_mix

logger = logging.getLogger(__name__)


class ExamCatalog:
    """In-memory catalog of exam profiles loaded from YAML."""

    def __init__(self, profiles_path: Optional[Path] = None):
        """Load the catalog.

        Args:
            profiles_path: YAML file to load (default: Config.EXAM_PROFILES_PATH)

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file is not a valid catalog
        """
        self.profiles_path = Path(profiles_path or Config.EXAM_PROFILES_PATH)
        self.profiles: Dict[str, ExamProfile] = {}
        self._lock = threading.RLock()
        self._load_profiles()

    def _load_profiles(self):
        """Parse every profile of the YAML file."""
        with self._lock:
            if not self.profiles_path.exists():
                raise FileNotFoundError(f"Exam profile catalog not found: {self.profiles_path}")

            try:
                with open(self.profiles_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Failed to parse exam profiles YAML: {e}")

            if not data or "profiles" not in data:
                raise ConfigurationError("Invalid exam catalog: missing 'profiles' key")

            profiles = {}
            for exam_id, profile_data in data["profiles"].items():
                profiles[exam_id] = self.parse_profile(exam_id, profile_data or {})
            self.profiles = profiles

            logger.info(f"Loaded {len(self.profiles)} exam profiles from {self.profiles_path}")

    def reload(self):
        self._load_profiles()

    def get(self, exam_id: str) -> ExamProfile:
        """Look up a profile.

        Raises:
            ConfigurationError: If the exam is not in the catalog
        """
        with self._lock:
            profile = self.profiles.get(exam_id)
        if profile is None:
            available = ", ".join(sorted(self.profiles))
            raise ConfigurationError(f"Unknown exam '{exam_id}'. Available: {available}")
        return profile

    def list_profiles(self) -> List[ExamProfile]:
        with self._lock:
            return list(self.profiles.values())

    def __contains__(self, exam_id: str) -> bool:
        return exam_id in self.profiles

    # ==================== PARSING ====================

    @staticmethod
    def parse_profile(exam_id: str, data: Dict[str, Any]) -> ExamProfile:
        """Build an ExamProfile from its YAML mapping.

        Raises:
            ConfigurationError: If a field has an invalid value
        """
        try:
            objectives = [ExamCatalog.parse_objective(o) for o in data.get("objectives", [])]
            if not objectives:
                raise ConfigurationError(f"Exam '{exam_id}' defines no objectives")

            ids = [o.id for o in objectives]
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ConfigurationError(
                    f"Exam '{exam_id}' has duplicate objectives: {', '.join(duplicates)}"
                )

            constraints = ExamConstraints(**data.get("constraints", {}))
            settings_data = data.get("study_settings")
            style_data = data.get("style_preferences")

            return ExamProfile(
                id=exam_id,
                name=data.get("name", exam_id),
                provider=data.get("provider", ""),
                objectives=objectives,
                constraints=constraints,
                study_settings=StudySettings(**settings_data) if settings_data else None,
                style_preferences=parse_style_mix(style_data) if style_data else None,
                terminology=list(data.get("terminology", [])),
            )
        except (TypeError, ValueError, KeyError) as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid exam profile '{exam_id}': {e}")

    @staticmethod
    def parse_objective(data: Dict[str, Any]) -> Objective:
        weight = float(data["weight"])
        if weight < 0:
            raise ConfigurationError(f"Objective '{data['id']}' has negative weight")

        difficulty = data.get("difficulty")
        return Objective(
            id=str(data["id"]),
            title=data.get("title", data["id"]),
            weight=weight,
            level=ObjectiveLevel(data.get("level", ObjectiveLevel.APPLICATION.value)),
            difficulty=DifficultyTag(difficulty) if difficulty else None,
            questions_per_session=data.get("questions_per_session"),
            key_topics=list(data.get("key_topics", [])),
        )
