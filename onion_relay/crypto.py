# onion_relay/crypto.py
from enum import Enum

from Crypto.Cipher import AES, PKCS1_OAEP
from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Random import get_random_bytes
from Crypto.Util.Padding import pad, unpad

from onion_relay import config

ZERO_IV = bytes(AES.block_size)
GCM_NONCE_BYTES = 12
GCM_TAG_BYTES = 16


class SymmetricScheme(str, Enum):
    CBC_ZERO_IV = "cbc-zero-iv"
    CBC = "cbc"
    GCM = "gcm"


# -----------------------------
# RSA (asymmetric) keys
# -----------------------------
def rsa_generate_keypair(bits=config.RSA_KEY_BITS):
    return RSA.generate(bits, e=config.RSA_PUBLIC_EXPONENT)


def export_public_key(key) -> bytes:
    # DER SubjectPublicKeyInfo
    return key.publickey().export_key(format="DER")


def export_private_key(key) -> bytes:
    # DER PKCS#8
    return key.export_key(format="DER", pkcs=8)


def import_rsa_key(data: bytes):
    return RSA.import_key(data)


def rsa_encrypt(public_key, plaintext: bytes) -> bytes:
    if isinstance(public_key, (bytes, bytearray)):
        public_key = import_rsa_key(public_key)
    return PKCS1_OAEP.new(public_key, hashAlgo=SHA256).encrypt(plaintext)


def rsa_decrypt(private_key, ciphertext: bytes) -> bytes:
    if isinstance(private_key, (bytes, bytearray)):
        private_key = import_rsa_key(private_key)
    try:
        return PKCS1_OAEP.new(private_key, hashAlgo=SHA256).decrypt(ciphertext)
    except TypeError as e:
        # pycryptodome raises TypeError for a key without its private half
        raise ValueError(str(e)) from e


# -----------------------------
# Symmetric Encryption (AES)
# -----------------------------
def aes_generate_key() -> bytes:
    return get_random_bytes(config.SYMMETRIC_KEY_BYTES)


def aes_encrypt(key, plaintext: bytes, scheme=SymmetricScheme.CBC) -> bytes:
    scheme = SymmetricScheme(scheme)
    if scheme is SymmetricScheme.GCM:
        nonce = get_random_bytes(GCM_NONCE_BYTES)
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        return nonce + ciphertext + tag
    if scheme is SymmetricScheme.CBC_ZERO_IV:
        cipher = AES.new(key, AES.MODE_CBC, iv=ZERO_IV)
        return cipher.encrypt(pad(plaintext, AES.block_size))
    iv = get_random_bytes(AES.block_size)
    cipher = AES.new(key, AES.MODE_CBC, iv=iv)
    return iv + cipher.encrypt(pad(plaintext, AES.block_size))


def aes_decrypt(key, ciphertext: bytes, scheme=SymmetricScheme.CBC) -> bytes:
    scheme = SymmetricScheme(scheme)
    if scheme is SymmetricScheme.GCM:
        if len(ciphertext) < GCM_NONCE_BYTES + GCM_TAG_BYTES:
            raise ValueError("Ciphertext too short for nonce and tag.")
        nonce = ciphertext[:GCM_NONCE_BYTES]
        tag = ciphertext[-GCM_TAG_BYTES:]
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        return cipher.decrypt_and_verify(ciphertext[GCM_NONCE_BYTES:-GCM_TAG_BYTES], tag)
    if scheme is SymmetricScheme.CBC_ZERO_IV:
        iv, ciph = ZERO_IV, ciphertext
    else:
        iv, ciph = ciphertext[:AES.block_size], ciphertext[AES.block_size:]
        if len(iv) != AES.block_size:
            raise ValueError("Ciphertext too short to carry an IV.")
    if not ciph:
        raise ValueError("Empty ciphertext.")
    cipher = AES.new(key, AES.MODE_CBC, iv=iv)
    return unpad(cipher.decrypt(ciph), AES.block_size)


class KeyService:
    """
    The asymmetric/symmetric primitives the onion codec is built on.

    RSA-OAEP (SHA-256) wraps per-layer AES-256 keys. The AES scheme is fixed
    per instance because both ends of a circuit must agree on it: the random
    IV and GCM schemes prepend material the zero-IV scheme does not carry.
    """

    def __init__(self, rsa_bits=config.RSA_KEY_BITS, scheme=config.SYMMETRIC_SCHEME):
        self.rsa_bits = rsa_bits
        self.scheme = SymmetricScheme(scheme)

    @property
    def asymmetric_ciphertext_length(self):
        return self.rsa_bits // 8

    def generate_keypair(self):
        return rsa_generate_keypair(self.rsa_bits)

    def export_public_key(self, key):
        return export_public_key(key)

    def export_private_key(self, key):
        return export_private_key(key)

    def import_key(self, data):
        return import_rsa_key(data)

    def asymmetric_encrypt(self, public_key, plaintext):
        return rsa_encrypt(public_key, plaintext)

    def asymmetric_decrypt(self, private_key, ciphertext):
        return rsa_decrypt(private_key, ciphertext)

    def generate_symmetric_key(self):
        return aes_generate_key()

    def export_symmetric_key(self, key):
        return bytes(key)

    def import_symmetric_key(self, data):
        if len(data) != config.SYMMETRIC_KEY_BYTES:
            raise ValueError(f"Symmetric key must be {config.SYMMETRIC_KEY_BYTES} bytes, got {len(data)}.")
        return bytes(data)

    def symmetric_encrypt(self, key, plaintext):
        return aes_encrypt(key, plaintext, self.scheme)

    def symmetric_decrypt(self, key, ciphertext):
        return aes_decrypt(key, ciphertext, self.scheme)
