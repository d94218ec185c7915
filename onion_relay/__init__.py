"""Onion-routing overlay simulation: layered RSA/AES onions over an in-process network."""

from onion_relay.circuit import Circuit, CircuitBuilder
from onion_relay.codec import OnionCodec
from onion_relay.crypto import KeyService, SymmetricScheme
from onion_relay.directory import Directory, RelayDescriptor
from onion_relay.errors import (
    DecryptionError,
    InsufficientRelaysError,
    OnionError,
    RegistrationError,
    TransportError,
)
from onion_relay.network import Network
from onion_relay.relay import RelayAgent
from onion_relay.sender import SenderAgent

__version__ = "0.1.0"
