"""Custom exceptions for the KVM controller."""


class KVMError(Exception):
    """Base exception for all KVM controller errors."""
    pass


class CommunicationError(KVMError):
    """Raised when no usable reply could be read from the KVM."""
    pass


class InvalidArgumentError(KVMError):
    """Raised for bad input, before anything is sent to the KVM."""
    pass


class InvalidPortError(InvalidArgumentError):
    """Raised when an invalid port number is specified."""
    pass


class InvalidValueError(InvalidArgumentError):
    """Raised when an invalid value is provided for a setting."""
    pass
