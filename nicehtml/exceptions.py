"""Custom exceptions for the fragment loader."""


class NiceHTMLError(RuntimeError):
    """Base exception for loader failures."""


class ConfigurationError(NiceHTMLError):
    """Raised when loader configuration is invalid."""


class EngineLoadError(NiceHTMLError):
    """Raised when the transpilation engine cannot be initialized."""


class FragmentResolutionError(NiceHTMLError):
    """Raised when a fragment's content cannot be retrieved."""


class MarkupSyntaxError(NiceHTMLError):
    """Raised by the NiceHTML engine for malformed markup."""

    def __init__(self, message: str, line: str = "") -> None:
        self.message = message
        self.line = line
        super().__init__(f"NiceHTML Error: {message}\n  for line: `{line}`")
