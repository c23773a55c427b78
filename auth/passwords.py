"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection feeds bcrypt 4.x a >72-byte password, which it now rejects.

The work factor is the point of this module. Each hash costs 2**rounds
iterations so an offline attacker holding the users table pays the same
price per guess. Tests drop rounds to 4; production keeps 10 or more.

bcrypt only reads the first 72 bytes of its input. The API layer caps
password length well below that (api/models.py).
"""

from __future__ import annotations

import bcrypt

_DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted one-way hashing with verification.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("secret1")
        hasher.verify("secret1", stored)   # True
    """

    def __init__(self, rounds: int = _DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Timing equalization target: login runs bcrypt against this when the
        # email is unknown, so both failure paths pay one full verification.
        self._dummy_hash = self.hash("freightgate_timing_dummy")

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt hash of plaintext with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return True if plaintext matches hashed. Mismatch is False, never an error."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed stored hash ("Invalid salt").
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """Burn one verification's worth of CPU. Always returns False."""
        self.verify(plaintext, self._dummy_hash)
        return False
