# onion_relay/sender.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from onion_relay import config
from onion_relay.circuit import CircuitBuilder
from onion_relay.codec import OnionCodec, decode_wire, payload_bytes

logger = logging.getLogger(__name__)


@dataclass
class UserState:
    last_sent_message: Optional[bytes] = None
    last_received_message: Optional[bytes] = None
    last_circuit: List[int] = field(default_factory=list)


class SenderAgent:
    """
    Represents a user of the network (e.g., Alice or Bob).
    Sends messages through a fresh three-relay circuit and receives the
    messages exit relays deliver to its own address.
    """

    def __init__(self, user_id, directory, network, codec=None, circuit_builder=None):
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 0:
            raise ValueError(f"user_id must be a non-negative integer, got {user_id!r}.")
        self.user_id = user_id
        self.directory = directory
        self.network = network
        self.codec = codec or OnionCodec()
        self.circuit_builder = circuit_builder or CircuitBuilder()
        self.state = UserState()

    @property
    def address(self):
        return config.user_address(self.user_id)

    @property
    def name(self):
        return f"User {self.user_id}"

    def start(self):
        self.network.bind(self.address, self.on_message, label=self.name)
        logger.info("[%s] Listening on %d", self.name, self.address)
        return self

    def stop(self):
        self.network.unbind(self.address)

    def status(self):
        return "live"

    def send(self, final_address, message):
        """
        Onion-encrypt ``message`` for a new circuit and hand it to the entry relay.
        Errors from the directory, the codec or the first delivery propagate.
        """
        message = payload_bytes(message)

        circuit = self.circuit_builder.build(self.directory.get_all_relays())
        self.state.last_circuit = circuit.ids
        logger.info("[%s] Built circuit through Relays %s", self.name, circuit.ids)

        blob = self.codec.encode_circuit(circuit, final_address, message)
        logger.info("[%s] Sending %d byte onion to Relay %d", self.name, len(blob), circuit.entry.relay_id)
        self.network.deliver(circuit.entry.address, blob, source=self.address)

        self.state.last_sent_message = message
        return circuit

    def send_to_user(self, destination_user_id, message):
        return self.send(config.user_address(destination_user_id), message)

    def on_message(self, text):
        self.receive(decode_wire(text))

    def receive(self, message: bytes):
        self.state.last_received_message = message
        try:
            logger.info("[%s] Received message: %s", self.name, message.decode("utf-8"))
        except UnicodeDecodeError:
            logger.info("[%s] Received binary message: %s", self.name, message.hex())

    # -----------------------------
    # Diagnostics
    # -----------------------------
    def get_last_sent_message(self):
        return self.state.last_sent_message

    def get_last_received_message(self):
        return self.state.last_received_message

    def get_last_circuit(self):
        return list(self.state.last_circuit)
