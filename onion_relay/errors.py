# onion_relay/errors.py


class OnionError(Exception):
    """Base class for every failure raised by the onion routing core."""


class InsufficientRelaysError(OnionError):
    """The directory holds fewer relays than a circuit needs."""

    def __init__(self, available, required):
        super().__init__(
            f"Not enough relays to build a circuit: {available} registered, {required} required."
        )
        self.available = available
        self.required = required


class DecryptionError(OnionError):
    """A layer could not be peeled: wrong key, corrupted or truncated ciphertext."""


class TransportError(OnionError):
    """Delivering a blob to an address failed."""

    def __init__(self, address, reason):
        super().__init__(f"Delivery to {address} failed: {reason}")
        self.address = address
        self.reason = reason


class RegistrationError(OnionError):
    """A relay could not be added to the directory."""
