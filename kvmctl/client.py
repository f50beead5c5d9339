"""KVM client implementation."""

import logging
import socket
import time
from typing import Optional

from .config import DeviceConfig
from .exceptions import (
    CommunicationError,
    InvalidPortError,
    InvalidValueError,
)
from .protocol import (
    LCD_TIMEOUTS,
    RESPONSE_LENGTH,
    Reply,
    decode_response,
    encode_payload,
    get_port_command,
    set_buzzer_command,
    set_lcd_timeout_command,
    set_port_command,
)

logger = logging.getLogger(__name__)


class KVMClient:
    """Client for controlling a network-attached KVM switch over TCP/IP.

    Every command opens its own short-lived connection, sends one frame,
    reads one result byte and closes the connection again. The KVM needs
    time to recover between commands, so each exchange is followed by a
    pause of ``config.delay`` seconds.

    The device's replies are unreliable. A dropped connection, a short
    reply and a literal 0xFF from the device all come back as the 0xFF
    sentinel; only reading the active port retries on it.

    Args:
        config: Connection settings (default: DeviceConfig())
    """

    def __init__(self, config: Optional[DeviceConfig] = None):
        self.config = config if config is not None else DeviceConfig()

    def _read_response(self, sock: socket.socket) -> bytes:
        response = b""
        while len(response) < RESPONSE_LENGTH:
            chunk = sock.recv(RESPONSE_LENGTH - len(response))
            if not chunk:
                break
            response += chunk
        return response

    def exchange(self, command: bytes) -> Reply:
        """Send a command frame and read the KVM's result byte.

        Args:
            command: Raw command bytes to send

        Returns:
            Reply telling apart a good byte, a 0xFF from the device and a
            failed round-trip
        """
        try:
            logger.debug("Sending %s to %s:%d", command.hex(), self.config.host, self.config.port)
            with socket.create_connection(
                (self.config.host, self.config.port), timeout=self.config.timeout
            ) as sock:
                sock.sendall(command)
                response = self._read_response(sock)
            logger.debug("Received %s", response.hex() or "nothing")
            return Reply.from_byte(decode_response(response))
        except socket.timeout as e:
            logger.warning("Connection to %s:%d timed out: %s", self.config.host, self.config.port, e)
        except OSError as e:
            logger.warning("Socket error talking to %s:%d: %s", self.config.host, self.config.port, e)
        except ValueError as e:
            logger.warning("Unusable response from %s:%d: %s", self.config.host, self.config.port, e)
        finally:
            self._pause()
        return Reply.transport_failed()

    def _pause(self) -> None:
        """Give the KVM time to recover before the next command."""
        time.sleep(self.config.delay)

    def send_command(self, command: bytes) -> int:
        """Send a command and return the result byte, or 0xFF on failure."""
        return self.exchange(command).value

    def send_payload(self, payload: str) -> int:
        """Send a command given as 4 hex digits, e.g. ``"1000"``."""
        return self.send_command(encode_payload(payload))

    def get_port(self, attempts: Optional[int] = None) -> int:
        """Get the currently active port.

        Args:
            attempts: Total number of tries (default: config.attempts)

        Returns:
            Current active port number (1-indexed)

        Raises:
            CommunicationError: If every attempt came back as the sentinel
        """
        attempts = attempts if attempts is not None else self.config.attempts
        for attempt in range(1, attempts + 1):
            reply = self.exchange(get_port_command())
            if not reply.failed:
                # Response is 0-indexed, convert to 1-indexed
                return reply.byte + 1
            logger.info("Port query attempt %d/%d failed (%s)", attempt, attempts, reply.status.value)

        raise CommunicationError(f"Unable to retrieve current port after {attempts} attempts")

    def set_port(self, port: int) -> dict:
        """Set the active port.

        The current port is read first and nothing is sent when it is
        already active. Otherwise the switch command is sent once, its
        reply ignored, and the port is read back. The port read back is
        reported as-is, even when the KVM did not switch.

        Args:
            port: Port number to activate (1 to num_ports)

        Returns:
            Dictionary with 'old_port', 'new_port' and 'switched' keys

        Raises:
            InvalidPortError: If port is out of range
            CommunicationError: If the current port cannot be read
        """
        num_ports = self.config.num_ports
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= num_ports:
            raise InvalidPortError(f"Invalid port specified. Range is 1 to {num_ports}.")

        old_port = self.get_port()

        if old_port == port:
            return {"old_port": old_port, "new_port": old_port, "switched": False}

        self.send_command(set_port_command(port))

        new_port = self.get_port()
        if new_port != port:
            logger.info("Requested port %d but KVM reports port %d", port, new_port)

        return {"old_port": old_port, "new_port": new_port, "switched": True}

    def set_buzzer(self, mode: int) -> None:
        """Mute (0) or unmute (1) the buzzer.

        Raises:
            InvalidValueError: If mode is not 0 or 1
        """
        if not isinstance(mode, int) or mode not in (0, 1):
            raise InvalidValueError("Buzzer only accepts 0 (off) or 1 (on).")

        self.send_command(set_buzzer_command(bool(mode)))

    def set_lcd_timeout(self, timeout: int) -> None:
        """Set the LCD timeout.

        Args:
            timeout: Timeout in seconds (0 to disable, or 10, or 30)

        Raises:
            InvalidValueError: If timeout is not a valid value
        """
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout not in LCD_TIMEOUTS:
            raise InvalidValueError("LCD timeout only accepts 0 (off), 10 or 30 seconds.")

        self.send_command(set_lcd_timeout_command(timeout))

    def __repr__(self) -> str:
        """String representation of the KVM client."""
        return (
            f"KVMClient(host='{self.config.host}', port={self.config.port}, "
            f"num_ports={self.config.num_ports})"
        )
