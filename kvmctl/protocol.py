"""Wire protocol for the KVM's fixed-length TCP command frames."""

import enum
from dataclasses import dataclass
from typing import Optional


# Protocol constants
PREAMBLE = bytes([0xAA, 0xBB, 0x03])
TERMINATOR = 0xEE
RESPONSE_TOKEN = 0x11
FRAME_LENGTH = 6

# The result code is the 5th byte of the reply; anything after it is ignored
RESPONSE_OFFSET = 4
RESPONSE_LENGTH = RESPONSE_OFFSET + 1

SENTINEL = 0xFF

# The set-port operand is a single zero-based byte
MAX_PORTS = 256

# Command tokens
CMD_SET_PORT = 0x01
CMD_SET_BUZZER = 0x02
CMD_SET_LCD_TIMEOUT = 0x03
CMD_GET_PORT = 0x10

LCD_TIMEOUTS = {
    0: 0x00,
    10: 0x0A,
    30: 0x1E,
}


class ReplyStatus(enum.Enum):
    """Outcome of a single request/response exchange."""

    OK = "ok"
    TRANSPORT_FAILED = "transport_failed"
    DEVICE_SENTINEL = "device_sentinel"


@dataclass(frozen=True)
class Reply:
    """Result of one exchange with the KVM.

    Keeps apart a dropped connection and a device that actually answered
    0xFF, while ``value`` folds both into the sentinel the way callers
    expect.
    """

    status: ReplyStatus
    byte: Optional[int] = None

    @classmethod
    def from_byte(cls, byte: int) -> "Reply":
        if byte == SENTINEL:
            return cls(ReplyStatus.DEVICE_SENTINEL, byte)
        return cls(ReplyStatus.OK, byte)

    @classmethod
    def transport_failed(cls) -> "Reply":
        return cls(ReplyStatus.TRANSPORT_FAILED)

    @property
    def failed(self) -> bool:
        return self.status is not ReplyStatus.OK

    @property
    def value(self) -> int:
        """Response byte, or SENTINEL when there was no usable reply."""
        if self.failed:
            return SENTINEL
        return self.byte


def encode_command(token: int, value: int) -> bytes:
    """Encode a command to send to the KVM.

    Args:
        token: Command token (e.g., CMD_SET_PORT)
        value: Command value (0-255)

    Returns:
        Encoded command bytes in format: AABB03<token><value>EE

    Raises:
        ValueError: If token or value do not fit in a byte
    """
    return PREAMBLE + bytes([token, value, TERMINATOR])


def encode_payload(payload: str) -> bytes:
    """Encode a command from its 4 hex digit payload, e.g. ``"1000"``.

    Raises:
        ValueError: If the payload is not exactly two hex bytes
    """
    if len(payload) != 4:
        raise ValueError(f"Payload must be 4 hex digits, got {payload!r}")
    token, value = bytes.fromhex(payload)
    return encode_command(token, value)


def decode_response(response: bytes) -> int:
    """Decode a response from the KVM.

    The KVM answers with ``AABB03 11 <value> [EE]``. Only the byte at
    offset 4 is meaningful, the rest of the reply is not checked.

    Args:
        response: Raw response bytes from the KVM

    Returns:
        The response value byte

    Raises:
        ValueError: If fewer than 5 bytes were received
    """
    if len(response) < RESPONSE_LENGTH:
        raise ValueError(
            f"Response too short: expected at least {RESPONSE_LENGTH} bytes, got {len(response)}"
        )
    return response[RESPONSE_OFFSET]


def get_port_command() -> bytes:
    """Create a command to get the current active port."""
    return encode_command(CMD_GET_PORT, 0x00)


def set_port_command(port: int) -> bytes:
    """Create a command to set the active port.

    Args:
        port: Port number, 1-indexed

    Returns:
        Encoded command bytes
    """
    # Port is 1-indexed in the API, but 0-indexed on the wire
    return encode_command(CMD_SET_PORT, port - 1)


def set_buzzer_command(enabled: bool) -> bytes:
    """Create a command to unmute (True) or mute (False) the buzzer."""
    return encode_command(CMD_SET_BUZZER, 0x01 if enabled else 0x00)


def set_lcd_timeout_command(timeout: int) -> bytes:
    """Create a command to set the LCD timeout.

    Args:
        timeout: Timeout in seconds (0 for disabled, 10, or 30)

    Returns:
        Encoded command bytes

    Raises:
        ValueError: If timeout is not a valid value
    """
    if timeout not in LCD_TIMEOUTS:
        raise ValueError(f"Invalid timeout: {timeout}. Must be 0, 10, or 30")

    return encode_command(CMD_SET_LCD_TIMEOUT, LCD_TIMEOUTS[timeout])
