import pytest

from onion_relay import config
from onion_relay.circuit import Circuit
from onion_relay.codec import (
    LayerPlaintext,
    OnionCodec,
    decode_wire,
    encode_wire,
    format_address,
    parse_address,
)
from onion_relay.crypto import export_public_key
from onion_relay.directory import RelayDescriptor
from onion_relay.errors import DecryptionError

from tests.conftest import PooledKeyService

K = 256


def make_circuit(rsa_keys, ids=(1, 2, 3)):
    return Circuit(tuple(RelayDescriptor(i, export_public_key(rsa_keys[n])) for n, i in enumerate(ids)))


class TestAddresses:
    def test_format_pads_to_ten_digits(self):
        assert format_address(9050) == b"0000009050"
        assert format_address(0) == b"0000000000"
        assert format_address(9999999999) == b"9999999999"

    @pytest.mark.parametrize("bad", [-1, 10 ** 10, "3000", 30.0, True])
    def test_format_rejects_bad_addresses(self, bad):
        with pytest.raises(ValueError):
            format_address(bad)

    def test_parse(self):
        assert parse_address(b"0000004002") == 4002

    @pytest.mark.parametrize("bad", [b"00000040", b"000000400x", b" 000004002", b"-000004002"])
    def test_parse_rejects_malformed(self, bad):
        with pytest.raises(DecryptionError):
            parse_address(bad)

    def test_layer_plaintext_layout(self):
        layer = LayerPlaintext(3001, b"hi")
        assert layer.to_bytes() == b"0000003001hi"
        assert LayerPlaintext.from_bytes(b"0000003001hi") == layer


class TestWire:
    def test_wire_is_base64_text(self):
        assert encode_wire(b"\x00\xff") == "AP8="
        assert decode_wire("AP8=") == b"\x00\xff"

    def test_invalid_base64_is_a_decryption_error(self):
        with pytest.raises(DecryptionError):
            decode_wire("not base64!!")


class TestLayer:
    @pytest.mark.parametrize("message", [b"", b"hello", bytes(range(256)) * 3])
    def test_round_trip(self, codec, rsa_keys, message):
        key = rsa_keys[0]
        layer = codec.encode_layer(export_public_key(key), 9050, message)
        assert codec.decode_layer(key, layer) == (9050, message)

    def test_asymmetric_prefix_has_fixed_length(self, codec, rsa_keys):
        key = rsa_keys[0]
        public_key = export_public_key(key)
        for size in (0, 1, 15, 16, 100, 5000):
            layer = codec.encode_layer(public_key, 3002, b"m" * size)
            padded = (config.ADDRESS_WIDTH + size) // 16 * 16 + 16
            # random IV scheme: 16 byte IV ahead of the padded body
            assert len(layer) - K == 16 + padded

    def test_fresh_key_per_layer(self, codec, rsa_keys):
        public_key = export_public_key(rsa_keys[0])
        first = codec.encode_layer(public_key, 3002, b"same")
        second = codec.encode_layer(public_key, 3002, b"same")
        assert first[:K] != second[:K]
        assert first[K:] != second[K:]

    @pytest.mark.parametrize("bad", [5, None, [1, 2], memoryview(b"ab")])
    def test_non_bytes_payload_is_rejected(self, codec, rsa_keys, bad):
        with pytest.raises(ValueError):
            codec.encode_layer(export_public_key(rsa_keys[0]), 9050, bad)
        with pytest.raises(ValueError):
            codec.encode_circuit(make_circuit(rsa_keys), 9050, bad)

    def test_str_payload_is_utf8_encoded(self, codec, rsa_keys):
        layer = codec.encode_layer(export_public_key(rsa_keys[0]), 9050, "h\u00e9llo")
        assert codec.decode_layer(rsa_keys[0], layer) == (9050, "h\u00e9llo".encode("utf-8"))

    def test_wrong_key_fails(self, codec, rsa_keys):
        layer = codec.encode_layer(export_public_key(rsa_keys[0]), 9050, b"hello")
        with pytest.raises(DecryptionError):
            codec.decode_layer(rsa_keys[1], layer)

    def test_truncated_blob_fails(self, codec, rsa_keys):
        layer = codec.encode_layer(export_public_key(rsa_keys[0]), 9050, b"hello")
        with pytest.raises(DecryptionError):
            codec.decode_layer(rsa_keys[0], layer[:K - 1])
        with pytest.raises(DecryptionError):
            codec.decode_layer(rsa_keys[0], layer[:K])

    def test_corrupted_asymmetric_part_fails(self, codec, rsa_keys):
        layer = bytearray(codec.encode_layer(export_public_key(rsa_keys[0]), 9050, b"hello"))
        layer[10] ^= 0xFF
        with pytest.raises(DecryptionError):
            codec.decode_layer(rsa_keys[0], bytes(layer))

    def test_key_size_mismatch_is_rejected_on_encode(self, rsa_keys):
        codec = OnionCodec(PooledKeyService(rsa_keys))
        codec.key_service.rsa_bits = 3072
        with pytest.raises(ValueError):
            codec.encode_layer(export_public_key(rsa_keys[0]), 9050, b"hello")

    def test_gcm_layers_detect_tampered_body(self, rsa_keys):
        codec = OnionCodec(PooledKeyService(rsa_keys, scheme="gcm"))
        key = rsa_keys[0]
        layer = codec.encode_layer(export_public_key(key), 9050, b"hello")
        assert codec.decode_layer(key, layer) == (9050, b"hello")
        for index in range(K, len(layer)):
            for bit in (0x01, 0x80):
                tampered = bytearray(layer)
                tampered[index] ^= bit
                with pytest.raises(DecryptionError):
                    codec.decode_layer(key, bytes(tampered))

    def test_zero_iv_layers_still_round_trip(self, rsa_keys):
        codec = OnionCodec(PooledKeyService(rsa_keys, scheme="cbc-zero-iv"))
        layer = codec.encode_layer(export_public_key(rsa_keys[0]), 9050, b"hello")
        assert len(layer) == K + 16
        assert codec.decode_layer(rsa_keys[0], layer) == (9050, b"hello")


class TestCircuit:
    def test_each_hop_reveals_only_the_next_layer(self, codec, rsa_keys):
        circuit = make_circuit(rsa_keys)
        blob = codec.encode_circuit(circuit, 9050, b"hello")

        next_hop, residual = codec.decode_layer(rsa_keys[0], blob)
        assert next_hop == config.relay_address(2)
        assert b"hello" not in residual

        next_hop, residual = codec.decode_layer(rsa_keys[1], residual)
        assert next_hop == config.relay_address(3)
        assert b"hello" not in residual

        assert codec.decode_layer(rsa_keys[2], residual) == (9050, b"hello")

    def test_hops_cannot_peel_out_of_order(self, codec, rsa_keys):
        blob = codec.encode_circuit(make_circuit(rsa_keys), 9050, b"hello")
        for key in rsa_keys[1:3]:
            with pytest.raises(DecryptionError):
                codec.decode_layer(key, blob)

    def test_blob_grows_by_one_layer_per_hop(self, codec, rsa_keys):
        single = codec.encode_circuit(make_circuit(rsa_keys, ids=(1,)), 9050, b"hello")
        triple = codec.encode_circuit(make_circuit(rsa_keys), 9050, b"hello")
        assert len(single) == K + 16 + 16
        assert len(triple) > 3 * K

    def test_empty_circuit_is_rejected(self, codec):
        with pytest.raises(ValueError):
            codec.encode_circuit([], 9050, b"hello")
