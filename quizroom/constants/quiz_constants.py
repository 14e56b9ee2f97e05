"""Quiz-related constants shared across the authoring, play and grading layers."""

MIN_QUESTIONS: int = 3
MAX_QUESTIONS: int = 5
MIN_ALTERNATIVES: int = 2
MAX_ALTERNATIVES: int = 5
DEFAULT_ALTERNATIVE_COUNT: int = 3

MIN_STATEMENT_LENGTH: int = 5
DEFAULT_POINTS: int = 10
DEFAULT_PENALTY: int = 0

MIN_TITLE_LENGTH: int = 3
MIN_CLASS_NAME_LENGTH: int = 2
MIN_THEME_LENGTH: int = 2

FEEDBACK_DURATION_MS: int = 1500
