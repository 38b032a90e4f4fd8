import time


class TTLCache:
    """
    Small get-or-compute cache for API responses.

    The clock is injectable so tests can move time forward by hand. Expired
    entries are dropped whenever a new value is stored.
    """

    def __init__(self, ttl_seconds, clock=time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries = {}

    def _expired(self, stored_at, now):
        return now - stored_at >= self.ttl_seconds

    def _evict_expired(self, now):
        for key in [key for key, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]:
            del self._entries[key]

    def get_or_compute(self, key, compute):
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None:
            stored_at, value = entry
            if not self._expired(stored_at, now):
                return value
            del self._entries[key]
        value = compute()
        self._evict_expired(now)
        self._entries[key] = (now, value)
        return value

    def invalidate(self, key):
        return self._entries.pop(key, None) is not None

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
