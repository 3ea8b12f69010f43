"""
auth/passwords.py -- bcrypt password hashing on a bounded worker pool.

Security design decisions:
  bcrypt directly, no passlib wrapper. Its cost factor makes brute-force of
  low-entropy secrets expensive, and the 22-char salt is generated per call
  and embedded in the output, so the same plaintext never hashes the same way
  twice and no salt column is needed.

  bcrypt only reads the first 72 bytes of its input and current releases
  raise ValueError past that. Registration rejects longer passwords up front
  (MAX_PASSWORD_BYTES); verify() treats the ValueError as a mismatch.

  Timing equalization: a dummy hash is computed at construction with the same
  cost factor. AuthenticationService verifies against it when the username is
  unknown, so "no such user" costs the same bcrypt work as "wrong password".

Concurrency:
  bcrypt is CPU-bound and deliberately slow. The async methods hand the work
  to a private ThreadPoolExecutor of `workers` threads so a login in flight
  never blocks the event loop, and a burst of logins queues on the pool
  instead of starving every other request. bcrypt releases the GIL while
  hashing, so the threads run in parallel.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import bcrypt

logger = logging.getLogger("authkeeper.auth")

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    def __init__(self, rounds: int = 12, workers: int = 4) -> None:
        self.rounds = rounds
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bcrypt")
        self.dummy_hash = self.hash_sync("authkeeper_timing_dummy")

    # ------------------------------------------------------------------
    # Blocking primitives
    # ------------------------------------------------------------------

    def hash_sync(self, plain: str) -> str:
        """Return a freshly salted bcrypt hash of the plaintext."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def verify_sync(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the bcrypt hash.

        bcrypt.checkpw recomputes the digest with the embedded salt and
        compares in constant time.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed stored hash or over-long input; either way, no match.
            return False

    # ------------------------------------------------------------------
    # Async wrappers -- run on the bounded pool
    # ------------------------------------------------------------------

    async def hash(self, plain: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.hash_sync, plain)

    async def verify(self, plain: str, hashed: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.verify_sync, plain, hashed)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
