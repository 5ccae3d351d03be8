class ConfigurationError(RuntimeError):
    """A required setting is missing or invalid. Fatal at startup."""


class InvalidAnswer(ValueError):
    """A user answer failed local validation; the same question is asked again."""

    def __init__(self, hint: str):
        super().__init__(hint)
        self.hint = hint


class GenerationError(RuntimeError):
    """The generative model request failed (transport error, timeout or non-2xx)."""


class ParseError(ValueError):
    """The model reply did not contain a parseable JSON object."""


class TelegramError(RuntimeError):
    def __init__(self, method: str, description: str, status_code: int | None = None):
        super().__init__(f"Telegram {method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code
