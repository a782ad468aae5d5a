"""Error types raised by note-copilot."""


class CopilotError(Exception):
    """Base class for all note-copilot errors."""


class NotConfiguredError(CopilotError, ValueError):
    """No API credential is configured."""


class GenerationFailedError(CopilotError):
    """The generation service returned an error or an unusable response."""


class ParseFailedError(CopilotError):
    """A response did not contain the expected structured payload."""


class DocumentIOError(CopilotError):
    """A vault document could not be read or written."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigError(CopilotError, ValueError):
    """A configuration value has the wrong type or shape."""
