import hashlib
import threading
import time

from flask import request

from .errors import RateLimitExceeded


def get_client_ip(trust_proxy_headers=False):
    """Get client IP address from request"""
    if trust_proxy_headers:
        if request.headers.get('X-Forwarded-For'):
            return request.headers.get('X-Forwarded-For').split(',')[0].strip()
        elif request.headers.get('X-Real-IP'):
            return request.headers.get('X-Real-IP')
    return request.remote_addr or 'unknown'


class SlidingWindowLimiter:
    """
    In-memory sliding window limiter: {identity_hash: [timestamp, ...]}

    Only admitted attempts are recorded. Attempts older than ``window``
    seconds are dropped, and identities with no recent attempts are swept
    out at most once per window.
    """

    def __init__(self, max_requests=10, window=15 * 60, clock=time.monotonic):
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._hits = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @staticmethod
    def _key(identity):
        return hashlib.sha256(identity.encode()).hexdigest()[:16]

    def hit(self, identity):
        """Record an attempt. Raises RateLimitExceeded when over quota."""
        now = self._clock()
        key = self._key(identity)

        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)

            # Clean old entries
            recent = [t for t in self._hits.get(key, []) if now - t < self.window]

            if len(recent) >= self.max_requests:
                self._hits[key] = recent
                retry_after = max(1, int(self.window - (now - recent[0])) + 1)
                raise RateLimitExceeded(key, retry_after)

            recent.append(now)
            self._hits[key] = recent

    def _sweep(self, now):
        """Drop identities whose newest attempt has left the window"""
        expired = [key for key, times in self._hits.items() if not times or now - times[-1] >= self.window]
        for key in expired:
            del self._hits[key]
        self._last_sweep = now

    def tracked_identities(self):
        with self._lock:
            return len(self._hits)

    def remaining(self, identity):
        now = self._clock()
        with self._lock:
            recent = [t for t in self._hits.get(self._key(identity), []) if now - t < self.window]
        return max(0, self.max_requests - len(recent))

    def reset(self):
        with self._lock:
            self._hits.clear()
