"""Conviction engine exceptions."""


class EvaluationParseError(ValueError):
    """Raised when an evaluation response cannot be turned into structured data."""

    def __init__(self, message: str, raw_response: str = ""):
        self.raw_response = raw_response
        super().__init__(message)
