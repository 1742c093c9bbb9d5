"""
Revoked-session store.

Sessions are JWTs, so logging out means remembering the token's `jti` until it
would have expired anyway. Redis does this in production; the in-memory
variant serves single-process development and tests.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod

import redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "parkpal:revoked:"


class TokenBlocklist(ABC):

    @abstractmethod
    def revoke(self, jti, expires_in):
        """Remember `jti` as revoked for `expires_in` seconds."""

    @abstractmethod
    def is_revoked(self, jti):
        """True if `jti` was revoked and has not expired yet."""


class RedisTokenBlocklist(TokenBlocklist):

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_url(cls, url):
        return cls(redis.Redis.from_url(url))

    def revoke(self, jti, expires_in):
        self.client.setex(KEY_PREFIX + jti, max(int(expires_in), 1), "1")

    def is_revoked(self, jti):
        return self.client.exists(KEY_PREFIX + jti) > 0


class InMemoryTokenBlocklist(TokenBlocklist):

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def revoke(self, jti, expires_in):
        with self._lock:
            now = self._clock()
            # Drop tokens that have expired anyway
            self._entries = {k: v for k, v in self._entries.items() if v > now}
            self._entries[jti] = now + max(expires_in, 0)

    def is_revoked(self, jti):
        with self._lock:
            expires_at = self._entries.get(jti)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._entries[jti]
                return False
            return True


def make_blocklist(config):
    url = config.get('REDIS_URL')
    if url:
        logger.info("Using Redis for revoked sessions")
        return RedisTokenBlocklist.from_url(url)
    logger.info("REDIS_URL not set; revoked sessions are kept in process memory")
    return InMemoryTokenBlocklist()
