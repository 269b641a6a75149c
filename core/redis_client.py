from datetime import datetime

import redis

from core.config import settings


class _FakeRedis:
    """In-process stand-in used when TESTING, covering the calls the app makes."""

    def __init__(self):
        self._store = {}
        self._exp = {}
        self.published = []

    def _cleanup(self, key):
        exp = self._exp.get(key)
        if exp is not None and datetime.utcnow().timestamp() > exp:
            self._store.pop(key, None)
            self._exp.pop(key, None)

    def setex(self, key, ttl, value):
        self._store[key] = value
        self._exp[key] = datetime.utcnow().timestamp() + int(ttl)

    def get(self, key):
        self._cleanup(key)
        return self._store.get(key)

    def exists(self, key):
        self._cleanup(key)
        return 1 if key in self._store else 0

    def ttl(self, key):
        self._cleanup(key)
        if key not in self._store:
            return -2  # key does not exist
        remain = int(self._exp.get(key, 0) - datetime.utcnow().timestamp())
        return max(remain, 0)

    def delete(self, key):
        self._store.pop(key, None)
        self._exp.pop(key, None)

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 0

    def ping(self):
        return True

    def flushall(self):
        self._store.clear()
        self._exp.clear()
        self.published.clear()


redis_client = _FakeRedis() if settings.TESTING else redis.from_url(settings.REDIS_URL, decode_responses=True)
