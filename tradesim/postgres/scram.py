"""Client side of SCRAM-SHA-256 authentication."""

from __future__ import annotations

import base64
import hashlib
import hmac

SCRAM_SHA256 = "SCRAM-SHA-256"

_GS2_HEADER = "n,,"
_SERVER_FIRST_PARAMS = 3


def _hmac(key: bytes, message: bytes) -> bytes:
    return hmac.new(key, message, hashlib.sha256).digest()


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class Scram:
    """One SCRAM-SHA-256 exchange, driven message by message."""

    def __init__(self) -> None:
        self._client_first_bare = ""
        self._client_nonce = ""
        self._server_first = ""
        self._server_nonce: str | None = None
        self._salt = b""
        self._iterations = 0
        self._expected_server_final: str | None = None

    def client_first_message(self, user: str, client_nonce: str) -> str:
        self._client_nonce = client_nonce
        self._client_first_bare = f"n={user},r={client_nonce}"
        return _GS2_HEADER + self._client_first_bare

    def resolve_server_first_message(self, message: str) -> None:
        """Read nonce, salt and iteration count from the server's first message."""
        params = [part[2:] for part in message.split(",")]
        if len(params) != _SERVER_FIRST_PARAMS:
            raise ValueError("Not enough params server first message")
        nonce, salt, iterations = params
        if not nonce.startswith(self._client_nonce):
            raise ValueError("Server nonce doesn't begin with client nonce")
        if not iterations.isdigit():
            raise ValueError("Invalid iteration count in server first message")
        self._server_first = message
        self._server_nonce = nonce
        self._salt = base64.b64decode(salt)
        self._iterations = int(iterations)

    def client_final_message(self, password: str) -> str:
        """Compute the proof and remember the server signature to expect."""
        if self._server_nonce is None:
            raise RuntimeError("server first message not resolved")
        final_bare = f"c=biws,r={self._server_nonce}"

        salted = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), self._salt, self._iterations
        )
        client_key = _hmac(salted, b"Client Key")
        stored_key = hashlib.sha256(client_key).digest()
        auth_message = f"{self._client_first_bare},{self._server_first},{final_bare}".encode(
            "utf-8"
        )
        client_signature = _hmac(stored_key, auth_message)
        proof = bytes(a ^ b for a, b in zip(client_key, client_signature))

        server_key = _hmac(salted, b"Server Key")
        server_signature = _hmac(server_key, auth_message)
        self._expected_server_final = f"v={_b64(server_signature)}"

        return f"{final_bare},p={_b64(proof)}"

    def verify_server_final_message(self, message: str) -> bool:
        return self._expected_server_final is not None and message == self._expected_server_final