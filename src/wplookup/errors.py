"""Exception types raised by wplookup services."""


class WplookupError(Exception):
    """Base class for wplookup errors."""

    pass


class BrowserLaunchError(WplookupError):
    """The browser or its page could not be started."""

    pass


class ChallengeSolveError(WplookupError):
    """The external solving service failed to produce a token.

    Attributes:
        code: Optional short error code reported by the service
            (e.g. "ERROR_ZERO_BALANCE")
    """

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        message = super().__str__()
        if self.code and self.code not in message:
            return f"{message} ({self.code})"
        return message


class LoginFailedError(WplookupError):
    """Login markers still show a logged-out session after submitting credentials."""

    pass


class SearchFormUnavailableError(WplookupError):
    """A required search form control is missing from the page."""

    pass


class ExtensionConfigError(WplookupError):
    """The solver browser-extension config file is missing or invalid."""

    pass
