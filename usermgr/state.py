"""Account state stored by the program and its binary encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar

_U64_MAX = 2**64 - 1


def _pack(fmt: str, value: int) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise ValueError(f"value {value!r} out of range: {exc}") from exc


def _u8(value: int) -> bytes:
    return _pack("<B", value)


def _u32(value: int) -> bytes:
    return _pack("<I", value)


def _u64(value: int) -> bytes:
    return _pack("<Q", value)


def _i64(value: int) -> bytes:
    return _pack("<q", value)


def _bool(value: bool) -> bytes:
    flag = 1 if value else 0
    return _u8(flag)


def _string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _u32(len(raw)) + raw


class _Reader:
    """Sequential decoder for little-endian length-prefixed binary data."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError("unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def u8(self) -> int:
        return self._unpack("<B")

    def u32(self) -> int:
        return self._unpack("<I")

    def u64(self) -> int:
        return self._unpack("<Q")

    def i64(self) -> int:
        return self._unpack("<q")

    def bool(self) -> bool:
        value = self.u8()
        if value not in (0, 1):
            raise ValueError(f"invalid bool value {value}")
        return value == 1

    def string(self) -> str:
        return self.take(self.u32()).decode("utf-8")

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise ValueError("not all bytes read")


class Theme(IntEnum):
    LIGHT = 0
    DARK = 1
    AUTO = 2


class Language(IntEnum):
    ENGLISH = 0
    SPANISH = 1
    FRENCH = 2
    GERMAN = 3


@dataclass
class UserPreferences:
    """User-configurable settings; privacy level is on a 0-5 scale."""

    theme: Theme = Theme.LIGHT
    language: Language = Language.ENGLISH
    notifications: bool = True
    privacy_level: int = 3

    MAX_SIZE: ClassVar[int] = 1 + 1 + 1 + 1

    def to_bytes(self) -> bytes:
        return (
            _u8(Theme(self.theme))
            + _u8(Language(self.language))
            + _bool(self.notifications)
            + _u8(self.privacy_level)
        )

    @classmethod
    def _read(cls, reader: _Reader) -> UserPreferences:
        return cls(
            theme=Theme(reader.u8()),
            language=Language(reader.u8()),
            notifications=reader.bool(),
            privacy_level=reader.u8(),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> UserPreferences:
        """Decode preferences; all of ``data`` must be consumed."""
        reader = _Reader(data)
        prefs = cls._read(reader)
        reader.finish()
        return prefs


@dataclass
class UserProfile:
    """Profile stored in a user account. Username max 32 bytes, email max 64."""

    user_id: int
    username: str
    email: str
    balance: int = 0
    reputation: int = 0
    is_verified: bool = False
    created_at: int = 0
    last_login: int = 0
    preferences: UserPreferences = field(default_factory=UserPreferences)

    MAX_SIZE: ClassVar[int] = (
        4  # user_id
        + 4 + 32  # username
        + 4 + 64  # email
        + 8  # balance
        + 4  # reputation
        + 1  # is_verified
        + 8  # created_at
        + 8  # last_login
        + UserPreferences.MAX_SIZE
    )

    @classmethod
    def create(cls, user_id: int, username: str, email: str) -> UserProfile:
        """A fresh profile with zero balance and default preferences."""
        return cls(user_id=user_id, username=username, email=email)

    def to_bytes(self) -> bytes:
        return b"".join(
            (
                _u32(self.user_id),
                _string(self.username),
                _string(self.email),
                _u64(self.balance),
                _u32(self.reputation),
                _bool(self.is_verified),
                _i64(self.created_at),
                _i64(self.last_login),
                self.preferences.to_bytes(),
            )
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> UserProfile:
        """Decode a profile; all of ``data`` must be consumed."""
        reader = _Reader(data)
        profile = cls(
            user_id=reader.u32(),
            username=reader.string(),
            email=reader.string(),
            balance=reader.u64(),
            reputation=reader.u32(),
            is_verified=reader.bool(),
            created_at=reader.i64(),
            last_login=reader.i64(),
            preferences=UserPreferences._read(reader),
        )
        reader.finish()
        return profile