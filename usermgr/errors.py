"""Error types raised by the user management program."""

from __future__ import annotations

from enum import IntEnum


class UserManagerError(IntEnum):
    """Program-specific error codes, numbered in declaration order."""

    INVALID_INSTRUCTION = 0
    NOT_INITIALIZED = 1
    ALREADY_INITIALIZED = 2
    USERNAME_TOO_LONG = 3
    EMAIL_TOO_LONG = 4
    INVALID_EMAIL = 5
    UNAUTHORIZED = 6
    INVALID_PRIVACY_LEVEL = 7
    INSUFFICIENT_FUNDS = 8

    def message(self) -> str:
        """Human-readable description of the error."""
        return _MESSAGES[self]


_MESSAGES = {
    UserManagerError.INVALID_INSTRUCTION: "Invalid Instruction",
    UserManagerError.NOT_INITIALIZED: "Not initialized account",
    UserManagerError.ALREADY_INITIALIZED: "Account already initialized",
    UserManagerError.USERNAME_TOO_LONG: "Username too long. Max 32 characters",
    UserManagerError.EMAIL_TOO_LONG: "Email too long. Max 64 characters",
    UserManagerError.INVALID_EMAIL: "Invalid email",
    UserManagerError.UNAUTHORIZED: "Unauthorized operation",
    UserManagerError.INVALID_PRIVACY_LEVEL: "Invalid privacy level",
    UserManagerError.INSUFFICIENT_FUNDS: "Insufficient funds",
}


class ProgramError(Exception):
    """Base class for every failure of a program instruction."""

    default_message = "program error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UserManagerException(ProgramError):
    """A custom program error carrying a :class:`UserManagerError` code."""

    def __init__(self, error: UserManagerError) -> None:
        self.error = UserManagerError(error)
        super().__init__(self.error.message())

    @property
    def code(self) -> int:
        """Numeric code of the custom error."""
        return int(self.error)


class MissingRequiredSignature(ProgramError):
    default_message = "missing required signature"


class IncorrectProgramId(ProgramError):
    default_message = "incorrect program id"


class ArithmeticOverflow(ProgramError):
    default_message = "arithmetic overflow"


class NotEnoughAccountKeys(ProgramError):
    default_message = "not enough account keys"


class InvalidInstructionData(ProgramError):
    default_message = "invalid instruction data"