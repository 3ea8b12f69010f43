"""Unit tests for auth/passwords.py -- bcrypt hashing on the worker pool.

Covers:
- hashes never equal the plaintext and are freshly salted per call
- verification accepts the original password against either salted artifact
- wrong, over-long and malformed inputs verify as False instead of raising
- async wrappers actually run on the hasher's own worker threads
"""

from __future__ import annotations

import asyncio
import threading

from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher


class TestHashing:
    def test_hash_is_not_plaintext(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash_sync("secret1")
        assert hashed != "secret1"
        assert "secret1" not in hashed
        assert hashed.startswith("$2b$04$")

    def test_same_plaintext_hashes_differently(self, hasher: PasswordHasher) -> None:
        first = hasher.hash_sync("secret1")
        second = hasher.hash_sync("secret1")
        assert first != second
        assert hasher.verify_sync("secret1", first)
        assert hasher.verify_sync("secret1", second)

    def test_wrong_password_fails(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash_sync("secret1")
        assert not hasher.verify_sync("secret2", hashed)

    def test_malformed_hash_fails_closed(self, hasher: PasswordHasher) -> None:
        assert hasher.verify_sync("secret1", "not-a-bcrypt-hash") is False

    def test_overlong_password_fails_closed(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash_sync("short")
        assert hasher.verify_sync("x" * (MAX_PASSWORD_BYTES + 28), hashed) is False

    def test_dummy_hash_is_a_real_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        assert hasher.dummy_hash.startswith("$2b$04$")
        assert not hasher.verify_sync("anything", hasher.dummy_hash)


class TestWorkerPool:
    def test_async_hash_and_verify(self, hasher: PasswordHasher) -> None:
        async def run() -> tuple[str, bool]:
            hashed = await hasher.hash("secret1")
            return hashed, await hasher.verify("secret1", hashed)

        hashed, ok = asyncio.run(run())
        assert hashed != "secret1"
        assert ok is True

    def test_hashing_runs_off_the_calling_thread(self, hasher: PasswordHasher, monkeypatch) -> None:
        seen: list[str] = []
        original = hasher.hash_sync

        def spy(plain: str) -> str:
            seen.append(threading.current_thread().name)
            return original(plain)

        monkeypatch.setattr(hasher, "hash_sync", spy)
        asyncio.run(hasher.hash("secret1"))
        assert len(seen) == 1
        assert seen[0].startswith("bcrypt")
        assert seen[0] != threading.current_thread().name

    def test_concurrent_hashes_all_complete(self, hasher: PasswordHasher) -> None:
        async def run() -> list[str]:
            return await asyncio.gather(*(hasher.hash(f"pw{i}") for i in range(6)))

        hashes = asyncio.run(run())
        assert len(set(hashes)) == 6
        assert all(hasher.verify_sync(f"pw{i}", h) for i, h in enumerate(hashes))
