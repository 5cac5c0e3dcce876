"""Error taxonomy for helper-manager.

- InvalidArgumentError: a required input is missing or malformed. Raised
  immediately and never wrapped into a result value.
- HelperIOError: a filesystem or child-process operation failed. The message
  always names the operation and the paths involved.
- CopyTimeoutError: a bounded child process (the bundle copy tool) exceeded
  its timeout.
- LauncherPathError: the running launcher did not advertise its own location.
"""


class InvalidArgumentError(ValueError):
    """Raised when a required argument is missing or invalid."""


class HelperIOError(OSError):
    """Raised when a Helper file or process operation fails."""


class CopyTimeoutError(HelperIOError):
    """Raised when the bundle copy tool does not finish in time."""


class LauncherPathError(RuntimeError):
    """Raised when the installer bundle cannot be located."""


def require_name(value: str | None, field: str) -> str:
    """Validate that ``value`` is a non-blank string.

    Args:
        value: Value to check
        field: Argument name used in the error message

    Returns:
        The original value

    Raises:
        InvalidArgumentError: If value is None, empty, or whitespace-only
    """
    if value is None or not value.strip():
        raise InvalidArgumentError(f'{field} cannot be null or empty')
    return value
