# onion_relay/relay.py
import logging
from dataclasses import dataclass
from typing import Optional

from onion_relay import config
from onion_relay.codec import OnionCodec, decode_wire
from onion_relay.errors import DecryptionError

logger = logging.getLogger(__name__)


@dataclass
class RouterState:
    last_received_encrypted_message: Optional[bytes] = None
    last_received_decrypted_message: Optional[bytes] = None
    last_message_destination: Optional[int] = None


class RelayAgent:
    """
    Represents an onion router.
    Holds one RSA keypair for its lifetime and peels exactly one layer of
    every blob it receives before forwarding the residue.
    """

    def __init__(self, relay_id, directory, network, codec=None):
        if isinstance(relay_id, bool) or not isinstance(relay_id, int) or relay_id < 0:
            raise ValueError(f"relay_id must be a non-negative integer, got {relay_id!r}.")
        self.relay_id = relay_id
        self.directory = directory
        self.network = network
        self.codec = codec or OnionCodec()
        self.state = RouterState()
        self._key = None
        self.public_key = None

    @property
    def address(self):
        return config.relay_address(self.relay_id)

    @property
    def name(self):
        return f"Relay {self.relay_id}"

    def start(self):
        """Generate the keypair, register with the directory and start listening."""
        ks = self.codec.key_service
        self._key = ks.generate_keypair()
        self.public_key = ks.export_public_key(self._key)
        self.directory.register(self.relay_id, self.public_key)
        self.network.bind(self.address, self.on_message, label=self.name)
        logger.info("[%s] Listening on %d", self.name, self.address)
        return self

    def stop(self):
        self.network.unbind(self.address)

    def status(self):
        return "live"

    def on_message(self, text):
        self.receive(decode_wire(text))

    def receive(self, blob: bytes):
        """
        Peel one layer of ``blob`` and forward the residue to the address it
        names. A layer that does not decrypt is rejected and nothing is sent.
        """
        if self._key is None:
            raise RuntimeError(f"{self.name} has not been started.")
        self.state.last_received_encrypted_message = blob
        try:
            next_hop, residual = self.codec.decode_layer(self._key, blob)
        except DecryptionError as e:
            logger.warning("[%s] Rejected %d byte blob: %s", self.name, len(blob), e)
            raise

        self.state.last_received_decrypted_message = residual
        self.state.last_message_destination = next_hop
        logger.info("[%s] Peeled layer, forwarding %d bytes to %d", self.name, len(residual), next_hop)
        self.network.deliver(next_hop, residual, source=self.address)

    # -----------------------------
    # Diagnostics
    # -----------------------------
    def get_last_received_encrypted_message(self):
        return self.state.last_received_encrypted_message

    def get_last_received_decrypted_message(self):
        return self.state.last_received_decrypted_message

    def get_last_message_destination(self):
        return self.state.last_message_destination

    def get_private_key(self):
        if self._key is None:
            return None
        return self.codec.key_service.export_private_key(self._key)
