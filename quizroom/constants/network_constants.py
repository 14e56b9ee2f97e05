"""Network configuration constants for the quiz API."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8080
API_PREFIX: str = "/quizzes"
USER_ID_HEADER: str = "X-User-Id"
USER_ROLE_HEADER: str = "X-User-Role"
