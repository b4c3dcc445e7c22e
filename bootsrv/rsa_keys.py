"""The RSA key pair machines use to send back an encrypted root password."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa


@dataclass(frozen=True)
class KeyPair:
    """A private key and its public half in authorized_keys form."""

    key: rsa.RSAPrivateKey
    public_key: bytes

    @classmethod
    def generate(cls, bits: int = 2048) -> KeyPair:
        key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
        public = key.public_key().public_bytes(
            serialization.Encoding.OpenSSH, serialization.PublicFormat.OpenSSH
        )
        return cls(key=key, public_key=public + b"\n")

    def decrypt_password(self, data: bytes) -> str:
        """Decrypt a PKCS #1 v1.5 encrypted password."""
        try:
            plain = self.key.decrypt(bytes(data), padding.PKCS1v15())
        except ValueError as exc:
            raise ValueError(f"decrypt submitted password: {exc}") from exc
        return plain.decode("utf-8", errors="replace")


_keypair: Optional[KeyPair] = None


def init_rsa() -> KeyPair:
    """Generate the process-wide key pair."""
    global _keypair
    _keypair = KeyPair.generate(2048)
    return _keypair


def decrypt_password(data: bytes) -> str:
    """Decrypt with the process-wide key pair."""
    if _keypair is None:
        raise RuntimeError("missing RSA private key")
    return _keypair.decrypt_password(data)


def serve_public_key(method: str) -> tuple[int, dict[str, str], bytes]:
    """Answer a request for the public key: status, headers and body."""
    if method in ("GET", "HEAD"):
        return 200, {}, b"" if _keypair is None else _keypair.public_key
    return 405, {"Allow": "GET, HEAD"}, b""