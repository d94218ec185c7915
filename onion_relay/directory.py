# onion_relay/directory.py
import base64
import logging
from dataclasses import dataclass

from onion_relay import config
from onion_relay.errors import RegistrationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelayDescriptor:
    relay_id: int
    public_key: bytes

    @property
    def address(self):
        return config.relay_address(self.relay_id)

    def to_dict(self):
        return {"nodeId": self.relay_id, "pubKey": base64.b64encode(self.public_key).decode("ascii")}


class Directory:
    """
    Registry of relays and their exported public keys.
    Readers only ever get snapshots; descriptors are never mutated.
    """

    def __init__(self):
        self._relays = {}

    def register(self, relay_id, public_key):
        if isinstance(relay_id, bool) or not isinstance(relay_id, int) or relay_id < 0:
            raise RegistrationError(f"Relay id must be a non-negative integer, got {relay_id!r}.")
        if relay_id in self._relays:
            raise RegistrationError(f"Relay {relay_id} is already registered.")
        descriptor = RelayDescriptor(relay_id, bytes(public_key))
        self._relays[relay_id] = descriptor
        logger.info("[Registry] Registered Relay %d", relay_id)
        return descriptor

    def get_relay(self, relay_id):
        return self._relays.get(relay_id, None)

    def get_all_relays(self):
        return tuple(self._relays[i] for i in sorted(self._relays))

    def __len__(self):
        return len(self._relays)

    def to_dict(self):
        return {"nodes": [relay.to_dict() for relay in self.get_all_relays()]}
