"""KVM switch control library.

A Python library and command-line tool for controlling network-attached
KVM switches over TCP/IP. Supports reading and switching the active port,
muting the buzzer and configuring the LCD timeout.
"""

__version__ = "0.1.0"

from .client import KVMClient
from .config import DeviceConfig, load_config
from .exceptions import (
    KVMError,
    CommunicationError,
    InvalidArgumentError,
    InvalidPortError,
    InvalidValueError,
)
from .protocol import Reply, ReplyStatus, SENTINEL

__all__ = [
    "KVMClient",
    "DeviceConfig",
    "load_config",
    "KVMError",
    "CommunicationError",
    "InvalidArgumentError",
    "InvalidPortError",
    "InvalidValueError",
    "Reply",
    "ReplyStatus",
    "SENTINEL",
]
