"""Outbound signal transports.

A transport accepts a text token and delivers it newline-terminated. The
serial transport talks to a microcontroller over pyserial; the logging
transport is a dry-run stand-in that only records what would be sent.
"""

import logging
from typing import List, Optional

import serial

from ..core.exceptions import SignalTransportError

logger = logging.getLogger(__name__)

TERMINATOR = "\n"


class SerialSignalTransport:
    """Writes signal tokens to a serial port."""

    def __init__(self, port: str, baud_rate: int = 9600, timeout: Optional[float] = 1.0):
        self.port = port
        self.baud_rate = baud_rate
        self.timeout = timeout
        self._serial: Optional[serial.Serial] = None

    def open(self) -> None:
        """Open the port.

        Raises:
            SignalTransportError: If the port cannot be opened.
        """
        try:
            self._serial = serial.Serial(self.port, self.baud_rate, timeout=self.timeout)
        except (serial.SerialException, ValueError) as e:
            raise SignalTransportError(f"could not open {self.port}: {e}") from e

        if not self._serial.is_open:
            self._serial = None
            raise SignalTransportError(f"could not open {self.port}")
        logger.info(f"Opened signal port {self.port} at {self.baud_rate} baud")

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def send(self, token: str) -> None:
        """Blocking write of ``token`` followed by the terminator."""
        if not self.is_open:
            raise SignalTransportError(f"port {self.port} is not open")
        try:
            payload = (token + TERMINATOR).encode("ascii")
        except UnicodeEncodeError as e:
            raise SignalTransportError(f"signal {token!r} is not ASCII") from e
        try:
            self._serial.write(payload)
            self._serial.flush()
        except serial.SerialException as e:
            raise SignalTransportError(f"failed writing to {self.port}: {e}") from e

    def close(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None
            logger.info(f"Closed signal port {self.port}")

    def __enter__(self) -> 'SerialSignalTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LoggingSignalTransport:
    """Dry-run transport: logs tokens instead of sending them."""

    def __init__(self):
        self.sent: List[str] = []

    def open(self) -> None:
        logger.info("Dry run: signals will be logged, not sent")

    @property
    def is_open(self) -> bool:
        return True

    def send(self, token: str) -> None:
        self.sent.append(token)
        logger.info(f"[dry-run] would send {token!r}")

    def close(self) -> None:
        pass

    def __enter__(self) -> 'LoggingSignalTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
