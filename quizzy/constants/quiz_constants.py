"""Quiz-related constants shared across the core and API layers."""

DEFAULT_QUIZ_LENGTH: int = 5
DEFAULT_LEADERBOARD_SIZE: int = 20
DEFAULT_HISTORY_LIMIT: int = 50
DEFAULT_DISPLAY_NAME: str = "Quizzy User"
