"""Exceptions raised by the game and the message format used to report them."""

EXIT_FAILURE = 1


class CubError(Exception):
    """A fatal game error carrying the process exit status."""

    def __init__(self, message: str, status: int = EXIT_FAILURE) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class MapError(CubError):
    """The map file or its contents are invalid."""


def format_error(message: str) -> str:
    """Return the text written to standard error for a fatal error."""
    if not message.endswith("\n"):
        message += "\n"
    return f"Error\n{message}"