"""Exceptions raised by the verification service."""


class PhoneVerificationError(Exception):
    """Base class for all phone verification errors."""


class StorageUnavailable(PhoneVerificationError):
    """The durable code store could not be reached or rejected the operation.

    Always recovered by the code store, which falls back to memory.
    """


class DeliveryFailed(PhoneVerificationError):
    """The delivery channel reported that the code was not sent."""

    def __init__(self, phone: str, reason: str = "") -> None:
        message = f"Failed to send verification code to {phone}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.phone = phone
        self.reason = reason
