# onion_relay/network.py
import logging

from onion_relay.codec import encode_wire
from onion_relay.errors import OnionError, TransportError
from onion_relay.trace import HopTrace

logger = logging.getLogger(__name__)


class Network:
    """
    In-process stand-in for the HTTP transport: every agent binds a handler
    at its numeric address and blobs travel between them as base64 text.
    """

    def __init__(self):
        self.endpoints = {}
        self.trace = HopTrace()

    def bind(self, address, handler, label=None):
        if address in self.endpoints:
            raise TransportError(address, "address already bound")
        self.endpoints[address] = handler
        self.trace.add_endpoint(address, label)
        logger.debug("[Network] Bound %s at %d", label or "endpoint", address)

    def unbind(self, address):
        self.endpoints.pop(address, None)

    def is_bound(self, address):
        return address in self.endpoints

    def deliver(self, address, blob, source=None):
        handler = self.endpoints.get(address, None)
        if handler is None:
            raise TransportError(address, "no endpoint is listening")

        self.trace.record(source, address, len(blob))
        logger.debug("[Network] %s -> %d (%d bytes)", source, address, len(blob))
        try:
            handler(encode_wire(blob))
        except TransportError:
            raise
        except OnionError as e:
            raise TransportError(address, f"{type(e).__name__}: {e}") from e
