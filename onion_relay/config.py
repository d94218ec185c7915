# onion_relay/config.py
import os


def _env_int(name, default):
    return int(os.environ.get(f"ONION_{name}", default))


# -----------------------------
# Network layout
# -----------------------------
BASE_ONION_ROUTER_PORT = _env_int("BASE_ONION_ROUTER_PORT", 4000)
BASE_USER_PORT = _env_int("BASE_USER_PORT", 3000)
DEFAULT_NUM_RELAYS = _env_int("NUM_RELAYS", 10)
MAX_TRACE_DELIVERIES = _env_int("MAX_TRACE_DELIVERIES", 1000)

# -----------------------------
# Protocol constants
# -----------------------------
CIRCUIT_LENGTH = 3
ADDRESS_WIDTH = 10
MAX_ADDRESS = 10 ** ADDRESS_WIDTH - 1

# -----------------------------
# Key sizes
# -----------------------------
# The asymmetric ciphertext length K (RSA_KEY_BITS // 8) is the only hop
# delimiter on the wire. Peers using another size cannot peel our onions.
RSA_KEY_BITS = _env_int("RSA_KEY_BITS", 2048)
RSA_PUBLIC_EXPONENT = 65537
SYMMETRIC_KEY_BYTES = 32
SYMMETRIC_SCHEME = os.environ.get("ONION_SYMMETRIC_SCHEME", "cbc")


def relay_address(relay_id):
    return BASE_ONION_ROUTER_PORT + relay_id


def user_address(user_id):
    return BASE_USER_PORT + user_id
