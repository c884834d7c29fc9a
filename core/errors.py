"""
Configuration errors raised while building strategies and sessions.

Runtime state problems (unknown objective on record, expired session state)
are logged and treated as no-ops instead; only malformed configuration
raises.
"""


class ConfigurationError(ValueError):
    """Invalid exam profile, strategy or session configuration."""


class InvalidWeightsError(ConfigurationError):
    """Objective weights are empty, negative or sum to zero."""


class UnknownObjectiveError(ConfigurationError):
    """An objective id does not exist in the exam profile."""

    def __init__(self, objective_id: str, exam_id: str = ""):
        self.objective_id = objective_id
        self.exam_id = exam_id
        where = f" in exam '{exam_id}'" if exam_id else ""
        super().__init__(f"Unknown objective '{objective_id}'{where}")


class UnknownModeError(ConfigurationError):
    """Sampling mode is not prep, efficient or mock."""

    def __init__(self, mode):
        self.mode = mode
        super().__init__(f"Unknown sampling mode: {mode}")
