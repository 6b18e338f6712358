"""Decoding of the system configuration parameter payload (power limit)."""

from __future__ import annotations

from dtukit.statistics import LastCommandSuccess, Parser

SYSTEM_CONFIG_PARA_SIZE = 16


class SystemConfigParaParser(Parser):
    """Holds the system configuration payload and the limit command state."""

    expected_byte_count = SYSTEM_CONFIG_PARA_SIZE

    def __init__(self) -> None:
        super().__init__()
        self._payload = bytearray(SYSTEM_CONFIG_PARA_SIZE)
        self._payload_length = 0
        # Nothing is assumed pending at startup; the limit is fetched at startup.
        self.last_limit_command_success = LastCommandSuccess.OK
        self.last_limit_request_success = LastCommandSuccess.NOK
        self.last_update_command = 0
        self.last_update_request = 0

    def clear_buffer(self) -> None:
        """Zero the payload and forget how much was received."""
        self._payload[:] = bytes(SYSTEM_CONFIG_PARA_SIZE)
        self._payload_length = 0

    def append_fragment(self, offset: int, payload: bytes) -> None:
        """Copy a received fragment into the payload at ``offset``."""
        if offset + len(payload) > SYSTEM_CONFIG_PARA_SIZE:
            raise ValueError(
                f"system config packet too large for buffer "
                f"({offset + len(payload)} > {SYSTEM_CONFIG_PARA_SIZE})"
            )
        self._payload[offset:offset + len(payload)] = payload
        self._payload_length += len(payload)

    @property
    def limit_percent(self) -> float:
        """Active power limit in percent, with one decimal."""
        with self._lock:
            return ((self._payload[2] << 8) | self._payload[3]) / 10.0

    @limit_percent.setter
    def limit_percent(self, value: float) -> None:
        raw = int(value * 10) & 0xFFFF
        with self._lock:
            self._payload[2] = raw >> 8
            self._payload[3] = raw & 0xFF

    def set_last_update_command(self, last_update: int) -> None:
        self.last_update_command = last_update
        self.last_update = last_update

    def set_last_update_request(self, last_update: int) -> None:
        self.last_update_request = last_update
        self.last_update = last_update