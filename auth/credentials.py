"""
auth/credentials.py -- Constant-effort check of the shared access password.

Security design decisions:
  The configured password is bcrypt-hashed once at construction and the
  plaintext is not kept on the instance. Every verify() call runs one
  bcrypt.checkpw(), whose cost is the same for a near miss and a wild guess
  and whose final comparison is constant-time. Response time therefore says
  nothing about how long a matching prefix was.

  Both sides are pre-hashed with SHA-256 (base64, 44 ASCII bytes) before
  bcrypt sees them. bcrypt only looks at the first 72 bytes of its input,
  so without the pre-hash two long passwords sharing a 72-byte prefix would
  compare equal; base64 keeps NUL bytes out of the bcrypt input.

Layer rule: no imports from api/, storage/, or access/.
"""

from __future__ import annotations

import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger("assetgate.auth")


def _prehash(value: str) -> bytes:
    return base64.b64encode(hashlib.sha256(value.encode("utf-8")).digest())


class CredentialVerifier:
    """Compares submitted passwords against the single configured secret."""

    def __init__(self, secret: str, rounds: int = 12) -> None:
        if not secret:
            # Settings already refuses to start without one; this guards direct construction.
            raise ValueError("CredentialVerifier requires a non-empty secret.")
        self._hashed = bcrypt.hashpw(_prehash(secret), bcrypt.gensalt(rounds=rounds))
        logger.debug("Access password hashed (bcrypt rounds=%d)", rounds)

    def verify(self, submitted: str) -> bool:
        """Return True iff submitted equals the configured secret."""
        if not isinstance(submitted, str):
            return False
        return bcrypt.checkpw(_prehash(submitted), self._hashed)
