class LlmgrepError(Exception):
    """Base class for all llmgrep errors."""


class SetupError(LlmgrepError):
    """The run cannot start: missing root, unreachable scoring service, bad config."""


class ScoringError(LlmgrepError):
    """A scoring call failed after exhausting its retries."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts
