"""Decoding of the device information (firmware and hardware) payloads."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from dtukit.statistics import Parser

DEV_INFO_SIZE = 20

_ALL = 0xFF

_CUMDAYS = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)


@dataclass(frozen=True)
class _DevInfo:
    hw_part: tuple[int, int, int, int]
    max_power: int
    model_name: str


_DEV_INFO: tuple[_DevInfo, ...] = tuple(
    _DevInfo(*row)
    for row in (
        ((0x10, 0x10, 0x10, _ALL), 300, "HM-300-1T"),
        ((0x10, 0x10, 0x20, _ALL), 350, "HM-350-1T"),
        ((0x10, 0x10, 0x30, _ALL), 400, "HM-400-1T"),
        ((0x10, 0x10, 0x40, _ALL), 400, "HM-400-1T"),
        ((0x10, 0x11, 0x10, _ALL), 600, "HM-600-2T"),
        ((0x10, 0x11, 0x20, _ALL), 700, "HM-700-2T"),
        ((0x10, 0x11, 0x30, _ALL), 800, "HM-800-2T"),
        ((0x10, 0x11, 0x40, _ALL), 800, "HM-800-2T"),
        ((0x10, 0x12, 0x10, _ALL), 1200, "HM-1200-4T"),
        ((0x10, 0x02, 0x30, _ALL), 1500, "MI-1500-4T Gen3"),
        ((0x10, 0x12, 0x30, _ALL), 1500, "HM-1500-4T"),
        # HM-300 factory limited to 70%
        ((0x10, 0x10, 0x10, 0x15), int(300 * 0.7), "HM-300-1T"),
        ((0x10, 0x20, 0x21, _ALL), 350, "HMS-350-1T"),
        ((0x10, 0x20, 0x41, _ALL), 400, "HMS-400-1T"),
        ((0x10, 0x10, 0x51, _ALL), 450, "HMS-450-1T"),
        ((0x10, 0x10, 0x71, _ALL), 500, "HMS-500-1T"),
        ((0x10, 0x20, 0x71, _ALL), 500, "HMS-500-1T v2"),
        ((0x10, 0x21, 0x11, _ALL), 600, "HMS-600-2T"),
        ((0x10, 0x21, 0x41, _ALL), 800, "HMS-800-2T"),
        ((0x10, 0x11, 0x51, _ALL), 900, "HMS-900-2T"),
        ((0x10, 0x21, 0x51, _ALL), 900, "HMS-900-2T"),
        ((0x10, 0x21, 0x71, _ALL), 1000, "HMS-1000-2T"),
        ((0x10, 0x11, 0x71, _ALL), 1000, "HMS-1000-2T"),
        ((0x10, 0x22, 0x41, _ALL), 1600, "HMS-1600-4T"),
        ((0x10, 0x12, 0x51, _ALL), 1800, "HMS-1800-4T"),
        ((0x10, 0x22, 0x51, _ALL), 1800, "HMS-1800-4T"),
        ((0x10, 0x12, 0x71, _ALL), 2000, "HMS-2000-4T"),
        ((0x10, 0x22, 0x71, _ALL), 2000, "HMS-2000-4T"),
        ((0x10, 0x32, 0x41, _ALL), 1600, "HMT-1600-4T"),
        ((0x10, 0x32, 0x51, _ALL), 1800, "HMT-1800-4T"),
        ((0x10, 0x33, 0x11, _ALL), 1800, "HMT-1800-6T"),
        ((0x10, 0x33, 0x31, _ALL), 2250, "HMT-2250-6T"),
    )
)


def timegm(year, month, mday, hour=0, minute=0, second=0, isdst=0) -> int:
    """Seconds since the Unix epoch of a UTC calendar time.

    ``month`` is 1-based; months outside 1..12 roll over into the year.
    An ``isdst`` of 1 subtracts one hour.
    """
    mon0 = month - 1
    year += mon0 // 12
    mon = mon0 % 12

    result = (year - 1970) * 365 + _CUMDAYS[mon]
    result += (year - 1968) // 4
    result -= (year - 1900) // 100
    result += (year - 1600) // 400
    is_leap = year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)
    if is_leap and mon < 2:
        result -= 1
    result += mday - 1
    result = result * 24 + hour
    result = result * 60 + minute
    result = result * 60 + second
    if isdst == 1:
        result -= 3600
    return result


def _be16(buf: bytes, pos: int) -> int:
    return (buf[pos] << 8) | buf[pos + 1]


class DevInfoParser(Parser):
    """Holds the "all" and "simple" device information payloads."""

    def __init__(self) -> None:
        super().__init__()
        self.last_update_all = 0
        self.last_update_simple = 0
        self._payload_all = bytearray(DEV_INFO_SIZE)
        self._all_length = 0
        self._payload_simple = bytearray(DEV_INFO_SIZE)
        self._simple_length = 0

    def clear_buffer_all(self) -> None:
        """Zero the firmware information payload."""
        self._payload_all[:] = bytes(DEV_INFO_SIZE)
        self._all_length = 0

    def append_fragment_all(self, offset: int, payload: bytes) -> None:
        """Copy a fragment into the firmware information payload."""
        if offset + len(payload) > DEV_INFO_SIZE:
            raise ValueError("dev info all packet too large for buffer")
        self._payload_all[offset:offset + len(payload)] = payload
        self._all_length += len(payload)

    def clear_buffer_simple(self) -> None:
        """Zero the hardware information payload."""
        self._payload_simple[:] = bytes(DEV_INFO_SIZE)
        self._simple_length = 0

    def append_fragment_simple(self, offset: int, payload: bytes) -> None:
        """Copy a fragment into the hardware information payload."""
        if offset + len(payload) > DEV_INFO_SIZE:
            raise ValueError("dev info simple packet too large for buffer")
        self._payload_simple[offset:offset + len(payload)] = payload
        self._simple_length += len(payload)

    def set_last_update_all(self, last_update: int) -> None:
        self.last_update_all = last_update
        self.last_update = last_update

    def set_last_update_simple(self, last_update: int) -> None:
        self.last_update_simple = last_update
        self.last_update = last_update

    def fw_build_version(self) -> int:
        with self._lock:
            return _be16(self._payload_all, 0)

    def fw_build_datetime(self) -> int:
        """Firmware build time as seconds since the epoch."""
        with self._lock:
            year = _be16(self._payload_all, 2)
            month_day = _be16(self._payload_all, 4)
            hour_minute = _be16(self._payload_all, 6)
        return timegm(
            year,
            month_day // 100,
            month_day % 100,
            hour_minute // 100,
            hour_minute % 100,
            0,
            0,
        )

    def fw_bootloader_version(self) -> int:
        with self._lock:
            return _be16(self._payload_all, 8)

    def hw_part_number(self) -> int:
        with self._lock:
            high = _be16(self._payload_simple, 2)
            low = _be16(self._payload_simple, 4)
        return (high << 16) | low

    def hw_version(self) -> str:
        with self._lock:
            major, minor = self._payload_simple[6], self._payload_simple[7]
        return f"{major:02d}.{minor:02d}"

    def max_power(self) -> int:
        """Rated power of the detected model, or 0 if unknown."""
        info = self._dev_info()
        return info.max_power if info is not None else 0

    def hw_model_name(self) -> str:
        """Name of the detected model, or an empty string if unknown."""
        info = self._dev_info()
        return info.model_name if info is not None else ""

    def contains_valid_data(self) -> bool:
        """True if the firmware build date lies after 2016."""
        try:
            info = time.localtime(self.fw_build_datetime())
        except (OverflowError, OSError, ValueError):
            return False
        return info.tm_year > 2016

    def _dev_info(self) -> Optional[_DevInfo]:
        with self._lock:
            part = tuple(self._payload_simple[2:6])
        for info in _DEV_INFO:
            if info.hw_part == part:
                return info
        for info in _DEV_INFO:
            if info.hw_part[:3] == part[:3]:
                return info
        return None