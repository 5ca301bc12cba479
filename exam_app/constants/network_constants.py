"""Network configuration constants for the exam host server."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000

# Graded sessions stay readable this long after their result was delivered.
FINISHED_SESSION_RETENTION_SECONDS: float = 600.0
