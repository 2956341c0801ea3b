"""Exceptions related to zealot.

Errors come in two tiers. A `FatalError` means the run must stop: the
top-level controller logs the cause and exits. Everything else is raised to
the caller, which decides what to do with it.
"""

__all__ = [
    "ZealotException",
    "FatalError",
    "InputException",
    "StoreException",
    "CommandException",
]


class ZealotException(Exception):
    """Generic base exception used for this library."""


class FatalError(ZealotException):
    """Raised when the run cannot continue and the process should terminate."""


class InputException(ZealotException):
    """Raised when the input flags or config values are not formatted as expected."""


class SequenceError(ZealotException):
    """Raised when a run stage is invoked out of order."""


class StoreException(ZealotException):
    """Raised when there is a failure talking to the key-value store."""


class StoreConnectionError(StoreException):
    """Raised when the key-value store is unreachable."""


class StoreUnreachableError(FatalError, StoreConnectionError):
    """Raised when the store can't be reached while connecting for a run."""


class KeyNotFoundError(StoreException):
    """Raised when a key does not exist in the store."""

    def __init__(self, key: str) -> None:
        super().__init__(f"key '{key}' not found")
        self.key = key


class InvalidValueError(StoreException):
    """Raised when a stored value cannot be decoded as the requested type."""


class StoreWriteError(FatalError, StoreException):
    """Raised when a value could not be written to the store."""


class LockException(FatalError, StoreException):
    """Raised when the resource lock could not be acquired."""


class RenderException(FatalError):
    """Raised when the template could not be expanded."""


class CommandException(ZealotException):
    """Raised when there is a failure running a subcommand."""


class FetchException(FatalError, CommandException):
    """Raised when the terraform binary could not be downloaded."""


class InitException(CommandException):
    """Raised when `terraform init` fails."""


class PlanException(CommandException):
    """Raised when `terraform plan` reports an error."""


class UnknownExitStatusError(PlanException):
    """Raised when `terraform plan` exits with a status outside of 0, 1 or 2."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"terraform plan exited with unknown status {exit_code}")
        self.exit_code = exit_code


class ApplyException(FatalError, CommandException):
    """Raised when `terraform apply` fails."""
