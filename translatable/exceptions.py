class TranslatableError(Exception):
    """Base class for errors raised by the translatable package."""


class ConfigurationError(TranslatableError):
    """Raised when locales or the translation model are not configured."""


class MassAssignmentError(TranslatableError):
    def __init__(self, key: str, locale: str | None = None) -> None:
        self.key = key
        self.locale = locale
        if locale:
            message = f"Mass assignment of '{key}' for locale '{locale}' is not allowed"
        else:
            message = f"Mass assignment of '{key}' is not allowed"
        super().__init__(message)
