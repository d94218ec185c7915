# onion_relay/codec.py
import base64
import binascii
import logging
from dataclasses import dataclass

from onion_relay import config
from onion_relay.crypto import KeyService
from onion_relay.errors import DecryptionError

logger = logging.getLogger(__name__)


def format_address(address) -> bytes:
    """Render an address as the 10 ASCII digit, zero-padded layer prefix."""
    if isinstance(address, bool) or not isinstance(address, int):
        raise ValueError(f"Address must be an integer, got {address!r}.")
    if not 0 <= address <= config.MAX_ADDRESS:
        raise ValueError(f"Address {address} does not fit in {config.ADDRESS_WIDTH} digits.")
    return str(address).zfill(config.ADDRESS_WIDTH).encode("ascii")


def parse_address(raw: bytes) -> int:
    if len(raw) != config.ADDRESS_WIDTH or not all(0x30 <= b <= 0x39 for b in raw):
        raise DecryptionError(f"Malformed next-hop address in layer: {raw!r}")
    return int(raw.decode("ascii"), 10)


def payload_bytes(data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError(f"Payload must be bytes or str, got {type(data).__name__}.")
    return bytes(data)


def encode_wire(blob: bytes) -> str:
    return base64.b64encode(blob).decode("ascii")


def decode_wire(text) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecryptionError(f"Wire payload is not valid base64: {e}") from e


@dataclass(frozen=True)
class LayerPlaintext:
    next_hop_address: int
    payload: bytes

    def to_bytes(self) -> bytes:
        return format_address(self.next_hop_address) + self.payload

    @classmethod
    def from_bytes(cls, data: bytes):
        return cls(parse_address(data[:config.ADDRESS_WIDTH]), data[config.ADDRESS_WIDTH:])


class OnionCodec:
    """
    Builds and peels onion layers.

    A layer is ``asymCt || symCt``: the RSA-wrapped AES key, always exactly
    ``K`` bytes for the key service's modulus size, followed by the AES
    encryption of ``address(10 digits) || payload``. There are no length
    fields; ``K`` is the only delimiter.

    Layers are nested: each hop's payload is the complete layer for the next
    hop, so a relay only ever learns the address of its successor and an
    opaque blob, and only the last relay recovers the message.
    """

    def __init__(self, key_service=None):
        self.key_service = key_service or KeyService()

    @property
    def asymmetric_ciphertext_length(self):
        return self.key_service.asymmetric_ciphertext_length

    def encode_layer(self, hop_public_key, next_hop_address, payload: bytes) -> bytes:
        ks = self.key_service
        sym_key = ks.generate_symmetric_key()
        layer_plaintext = LayerPlaintext(next_hop_address, payload_bytes(payload)).to_bytes()
        sym_ct = ks.symmetric_encrypt(sym_key, layer_plaintext)
        asym_ct = ks.asymmetric_encrypt(hop_public_key, ks.export_symmetric_key(sym_key))
        if len(asym_ct) != self.asymmetric_ciphertext_length:
            raise ValueError(
                f"Asymmetric ciphertext is {len(asym_ct)} bytes, expected {self.asymmetric_ciphertext_length}; "
                "the hop key size does not match this codec."
            )
        return asym_ct + sym_ct

    def encode_circuit(self, circuit, final_address, message: bytes) -> bytes:
        """
        Wrap ``message`` for every hop of ``circuit`` and return the blob for
        the first hop. Built innermost first: the exit hop is told the final
        address, every other hop is told the address of its successor.
        """
        relays = list(circuit)
        if not relays:
            raise ValueError("Cannot encode an onion for an empty circuit.")

        data = payload_bytes(message)
        next_address = final_address
        for relay in reversed(relays):
            data = self.encode_layer(relay.public_key, next_address, data)
            next_address = relay.address
        logger.debug("[Codec] Built %d-layer onion, %d bytes", len(relays), len(data))
        return data

    def decode_layer(self, relay_private_key, blob: bytes):
        """Peel one layer. Returns ``(next_hop_address, residual_payload)``."""
        ks = self.key_service
        k = self.asymmetric_ciphertext_length
        if len(blob) <= k:
            raise DecryptionError(f"Blob of {len(blob)} bytes is too short for a layer (K={k}).")

        asym_ct, sym_ct = blob[:k], blob[k:]
        try:
            sym_key = ks.import_symmetric_key(ks.asymmetric_decrypt(relay_private_key, asym_ct))
        except ValueError as e:
            raise DecryptionError(f"Could not unwrap layer key: {e}") from e
        try:
            layer_plaintext = ks.symmetric_decrypt(sym_key, sym_ct)
        except ValueError as e:
            raise DecryptionError(f"Could not decrypt layer body: {e}") from e

        if len(layer_plaintext) < config.ADDRESS_WIDTH:
            raise DecryptionError("Layer plaintext is too short to carry an address.")
        layer = LayerPlaintext.from_bytes(layer_plaintext)
        return layer.next_hop_address, layer.payload
