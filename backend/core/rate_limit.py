import os
import threading
import time
from typing import Dict, Optional, Tuple

from flask import jsonify, request

from core.logger import logger


def get_client_ip():
    """Get client IP address for rate limiting"""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    return request.remote_addr or 'unknown'


class RateLimiter:
    """Fixed-window request counter per client IP."""

    def __init__(self, max_requests: Optional[int] = None, window_seconds: Optional[float] = None, clock=time.time):
        if max_requests is None:
            max_requests = int(os.getenv('RATE_LIMIT_MAX_REQUESTS', '100'))
        if window_seconds is None:
            window_seconds = int(os.getenv('RATE_LIMIT_WINDOW_MS', str(15 * 60 * 1000))) / 1000
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._attempts: Dict[str, Dict[str, float]] = {}  # {ip: {count, reset_time}}
        self._next_sweep = 0.0

    def hit(self, ip: str) -> Tuple[bool, int]:
        """
        Count one request for ip.

        Returns (allowed, retry_after_seconds); retry_after is 0 when allowed.
        """
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            window = self._attempts.get(ip)
            # Reset if window expired
            if window is None or now >= window['reset_time']:
                window = {'count': 0, 'reset_time': now + self.window_seconds}
                self._attempts[ip] = window

            if window['count'] >= self.max_requests:
                return False, max(1, int(window['reset_time'] - now + 0.999))

            window['count'] += 1
            return True, 0

    def _sweep(self, now: float) -> None:
        """Drop expired windows; runs at most once per window. Caller holds the lock."""
        expired = [ip for ip, window in self._attempts.items() if now >= window['reset_time']]
        for ip in expired:
            del self._attempts[ip]
        self._next_sweep = now + self.window_seconds

    def reset(self, ip: Optional[str] = None) -> None:
        with self._lock:
            if ip is None:
                self._attempts.clear()
            else:
                self._attempts.pop(ip, None)

    def check_request(self):
        """before_request hook: returns a 429 response when the caller is over the limit."""
        ip = get_client_ip()
        allowed, retry_after = self.hit(ip)
        if allowed:
            return None
        logger.warning(f"Rate limit exceeded for {ip}")
        response = jsonify({
            'error': 'Too many requests from this IP, please try again later.',
            'retryAfter': retry_after,
        })
        response.headers['Retry-After'] = str(retry_after)
        return response, 429
