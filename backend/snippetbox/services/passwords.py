"""
Snippetbox — Password Hashing
==============================

What:  One-way password hashing and verification with bcrypt.
Why:   bcrypt is deliberately slow; running it on the event loop would stall
       every other request. Both operations are pushed to the thread pool.
"""

import bcrypt
from starlette.concurrency import run_in_threadpool


class PasswordHasher:
    """bcrypt hasher with a configurable work factor."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_sync(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_sync(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed hash in the store
            return False

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.hash_sync, password)

    async def verify(self, password: str, hashed: str) -> bool:
        return await run_in_threadpool(self.verify_sync, password, hashed)
