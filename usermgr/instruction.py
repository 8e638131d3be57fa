"""Instructions accepted by the program and their wire encoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, Union

from usermgr.errors import InvalidInstructionData
from usermgr.state import UserPreferences, _bool, _Reader, _string, _u8, _u64

_T = TypeVar("_T")


@dataclass(frozen=True)
class CreateProfile:
    username: str
    email: str


@dataclass(frozen=True)
class GetProfile:
    pass


@dataclass(frozen=True)
class UpdateProfile:
    username: Optional[str] = None
    email: Optional[str] = None
    preferences: Optional[UserPreferences] = None


@dataclass(frozen=True)
class UpdateBalance:
    amount: int
    is_deposit: bool


@dataclass(frozen=True)
class DeleteProfile:
    pass


Instruction = Union[CreateProfile, GetProfile, UpdateProfile, UpdateBalance, DeleteProfile]


def _option(value: Optional[_T], encode: Callable[[_T], bytes]) -> bytes:
    return b"\x00" if value is None else b"\x01" + encode(value)


def _read_option(reader: _Reader, read: Callable[[], _T]) -> Optional[_T]:
    tag = reader.u8()
    if tag == 0:
        return None
    if tag == 1:
        return read()
    raise ValueError(f"invalid option tag {tag}")


def encode_instruction(instruction: Instruction) -> bytes:
    """Serialize an instruction to its binary form."""
    if isinstance(instruction, CreateProfile):
        return _u8(0) + _string(instruction.username) + _string(instruction.email)
    if isinstance(instruction, GetProfile):
        return _u8(1)
    if isinstance(instruction, UpdateProfile):
        return (
            _u8(2)
            + _option(instruction.username, _string)
            + _option(instruction.email, _string)
            + _option(instruction.preferences, UserPreferences.to_bytes)
        )
    if isinstance(instruction, UpdateBalance):
        return _u8(3) + _u64(instruction.amount) + _bool(instruction.is_deposit)
    if isinstance(instruction, DeleteProfile):
        return _u8(4)
    raise TypeError(f"not an instruction: {instruction!r}")


def decode_instruction(data: bytes) -> Instruction:
    """Parse binary instruction data; raises InvalidInstructionData when malformed."""
    try:
        reader = _Reader(data)
        tag = reader.u8()
        instruction: Instruction
        if tag == 0:
            instruction = CreateProfile(reader.string(), reader.string())
        elif tag == 1:
            instruction = GetProfile()
        elif tag == 2:
            instruction = UpdateProfile(
                username=_read_option(reader, reader.string),
                email=_read_option(reader, reader.string),
                preferences=_read_option(reader, lambda: UserPreferences._read(reader)),
            )
        elif tag == 3:
            instruction = UpdateBalance(amount=reader.u64(), is_deposit=reader.bool())
        elif tag == 4:
            instruction = DeleteProfile()
        else:
            raise ValueError(f"unknown instruction tag {tag}")
        reader.finish()
    except ValueError as exc:
        raise InvalidInstructionData(str(exc)) from exc
    return instruction