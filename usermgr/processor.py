"""Instruction processing for user profile accounts."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

from usermgr.errors import (
    ArithmeticOverflow,
    IncorrectProgramId,
    MissingRequiredSignature,
    NotEnoughAccountKeys,
    ProgramError,
    UserManagerError,
    UserManagerException,
)
from usermgr.instruction import (
    CreateProfile,
    DeleteProfile,
    GetProfile,
    UpdateBalance,
    UpdateProfile,
    decode_instruction,
)
from usermgr.state import UserPreferences, UserProfile

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
ACCOUNT_STORAGE_OVERHEAD = 128
_U64_MAX = 2**64 - 1
_MAX_USERNAME = 32
_MAX_EMAIL = 64
_MAX_PRIVACY_LEVEL = 5


@dataclass
class AccountInfo:
    """An account handed to the program."""

    key: str
    is_signer: bool = False
    is_writable: bool = True
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: str = SYSTEM_PROGRAM_ID

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)


@dataclass(frozen=True)
class Rent:
    """Rent parameters used to compute the rent-exempt balance."""

    lamports_per_byte_year: int = 3480
    exemption_threshold: float = 2.0

    def minimum_balance(self, data_len: int) -> int:
        """Lamports needed for an account of ``data_len`` bytes to be rent exempt."""
        base = (ACCOUNT_STORAGE_OVERHEAD + data_len) * self.lamports_per_byte_year
        return int(base * self.exemption_threshold)


@dataclass
class Runtime:
    """Execution environment: clock, rent, log and the system account creator."""

    unix_timestamp: int = 0
    rent: Rent = field(default_factory=Rent)
    logs: list = field(default_factory=list)

    def log(self, message: str) -> None:
        self.logs.append(message)

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        lamports: int,
        space: int,
        owner: str,
    ) -> None:
        """Fund and allocate ``new_account`` from ``payer`` and assign it to ``owner``."""
        if not payer.is_signer or not new_account.is_signer:
            raise MissingRequiredSignature()
        if new_account.lamports or new_account.data or new_account.owner != SYSTEM_PROGRAM_ID:
            raise ProgramError(f"account {new_account.key} already in use")
        if payer.lamports < lamports:
            raise ProgramError(f"insufficient lamports in {payer.key}")
        payer.lamports -= lamports
        new_account.lamports += lamports
        new_account.data = bytearray(space)
        new_account.owner = owner


def _next_account(accounts: Iterator[AccountInfo]) -> AccountInfo:
    try:
        return next(accounts)
    except StopIteration:
        raise NotEnoughAccountKeys() from None


def _fail(error: UserManagerError) -> UserManagerException:
    return UserManagerException(error)


def _check_program_account(program_id: str, account: AccountInfo) -> None:
    if len(account.data) != 0:
        raise _fail(UserManagerError.ALREADY_INITIALIZED)
    if account.owner != program_id:
        raise IncorrectProgramId()


def _load_profile(account: AccountInfo) -> UserProfile:
    try:
        return UserProfile.from_bytes(bytes(account.data))
    except ValueError as exc:
        raise ProgramError(f"failed to deserialize account data: {exc}") from exc


def _store_profile(account: AccountInfo, profile: UserProfile) -> None:
    encoded = profile.to_bytes()
    if len(encoded) > len(account.data):
        raise ProgramError(f"account {account.key} data too small")
    account.data[: len(encoded)] = encoded


def _check_username(username: str) -> None:
    if len(username.encode("utf-8")) > _MAX_USERNAME:
        raise _fail(UserManagerError.USERNAME_TOO_LONG)


def _check_email(email: str) -> None:
    if len(email.encode("utf-8")) > _MAX_EMAIL:
        raise _fail(UserManagerError.EMAIL_TOO_LONG)
    if "@" not in email:
        raise _fail(UserManagerError.INVALID_EMAIL)


class Processor:
    """Executes user management instructions against accounts."""

    def __init__(self, runtime: Runtime) -> None:
        self.runtime = runtime

    def process(self, program_id: str, accounts: Sequence[AccountInfo], instruction_data: bytes) -> None:
        """Decode and run an instruction.

        Only malformed instruction data is reported; a failing handler leaves
        whatever it changed before failing and the instruction still succeeds.
        """
        instruction = decode_instruction(instruction_data)
        with contextlib.suppress(ProgramError):
            match instruction:
                case CreateProfile(username=username, email=email):
                    self.create_profile(program_id, accounts, username, email)
                case GetProfile():
                    self.get_profile(program_id, accounts)
                case UpdateProfile(username=username, email=email, preferences=preferences):
                    self.update_profile(program_id, accounts, username, email, preferences)
                case UpdateBalance(amount=amount, is_deposit=is_deposit):
                    self.update_balance(program_id, accounts, amount, is_deposit)
                case DeleteProfile():
                    self.delete_profile(program_id, accounts)

    def create_profile(
        self, program_id: str, accounts: Sequence[AccountInfo], username: str, email: str
    ) -> None:
        it = iter(accounts)
        user_account = _next_account(it)
        payer_account = _next_account(it)

        _check_username(username)
        _check_email(email)
        if not payer_account.is_signer:
            raise MissingRequiredSignature()
        if len(user_account.data) != 0:
            raise _fail(UserManagerError.ALREADY_INITIALIZED)

        required = self.runtime.rent.minimum_balance(UserProfile.MAX_SIZE)
        self.runtime.create_account(
            payer_account, user_account, required, UserProfile.MAX_SIZE, program_id
        )

        timestamp = self.runtime.unix_timestamp
        user_id = timestamp & 0xFFFFFFFF
        profile = UserProfile.create(user_id, username, email)
        profile.created_at = timestamp
        profile.last_login = timestamp
        _store_profile(user_account, profile)
        self.runtime.log(f"User created successfully. ID: {user_id}")

    def get_profile(self, program_id: str, accounts: Sequence[AccountInfo]) -> UserProfile:
        user_account = _next_account(iter(accounts))
        _check_program_account(program_id, user_account)
        profile = _load_profile(user_account)
        self.runtime.log(f"User Profile: {profile!r}")
        return profile

    def update_profile(
        self,
        program_id: str,
        accounts: Sequence[AccountInfo],
        username: Optional[str],
        email: Optional[str],
        preferences: Optional[UserPreferences],
    ) -> None:
        user_account = _next_account(iter(accounts))
        if not user_account.is_signer:
            raise MissingRequiredSignature()
        _check_program_account(program_id, user_account)
        profile = _load_profile(user_account)

        if username is not None:
            _check_username(username)
            profile.username = username
            self.runtime.log(f"Username updated successfully to {profile.username}.")
        if email is not None:
            _check_email(email)
            profile.email = email
            self.runtime.log(f"Email updated successfully to {profile.email}.")
        if preferences is not None:
            if preferences.privacy_level > _MAX_PRIVACY_LEVEL:
                raise _fail(UserManagerError.INVALID_PRIVACY_LEVEL)
            profile.preferences = preferences
            self.runtime.log("Preferences updated successfully.")

        profile.last_login = self.runtime.unix_timestamp
        _store_profile(user_account, profile)
        self.runtime.log("User preferences updated successfully.")

    def update_balance(
        self, program_id: str, accounts: Sequence[AccountInfo], amount: int, is_deposit: bool
    ) -> None:
        user_account = _next_account(iter(accounts))
        if not user_account.is_signer:
            raise MissingRequiredSignature()
        _check_program_account(program_id, user_account)
        profile = _load_profile(user_account)

        if is_deposit:
            profile.balance = min(profile.balance + amount, _U64_MAX)
            self.runtime.log(
                f"Deposited {amount} tokens successful. New balance: {profile.balance}"
            )
        else:
            if profile.balance < amount:
                raise _fail(UserManagerError.INSUFFICIENT_FUNDS)
            profile.balance -= amount
            self.runtime.log(
                f"Withdrew {amount} tokens successful. New balance: {profile.balance}"
            )

        profile.last_login = self.runtime.unix_timestamp
        _store_profile(user_account, profile)
        self.runtime.log("User balance updated successfully.")

    def delete_profile(self, program_id: str, accounts: Sequence[AccountInfo]) -> None:
        it = iter(accounts)
        user_account = _next_account(it)
        destination = _next_account(it)

        if not user_account.is_signer:
            raise MissingRequiredSignature()
        _check_program_account(program_id, user_account)
        profile = _load_profile(user_account)
        self.runtime.log(f"Eliminating user: {profile.username}")

        total = destination.lamports + user_account.lamports
        if total > _U64_MAX:
            raise ArithmeticOverflow()
        destination.lamports = total
        user_account.lamports = 0
        user_account.data[:] = bytes(len(user_account.data))
        self.runtime.log("User profile deleted successfully.")


def process_instruction(
    program_id: str,
    accounts: Sequence[AccountInfo],
    instruction_data: bytes,
    runtime: Runtime,
) -> None:
    """Program entry point."""
    Processor(runtime).process(program_id, accounts, instruction_data)