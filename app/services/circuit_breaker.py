"""
Circuit breaker with Redis-backed state, guarding every external call
(text generation providers and the delivery channel).

States:
  - CLOSED    → normal operation, calls pass through
  - OPEN      → too many consecutive failures, calls short-circuit with CircuitOpenError
  - HALF_OPEN → reset_timeout elapsed, the next call is let through as a trial

Breaker bookkeeping is best-effort: if Redis is unreachable the breaker
fails open and never blocks the call it protects.
"""
import logging
import time

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitOpenError(Exception):
    """Raised when calling through an open circuit breaker."""
    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is OPEN — service unavailable")


class CircuitBreaker:
    """
    Redis-backed circuit breaker.

    Usage:
        cb = CircuitBreaker('anthropic', redis_client, failure_threshold=5, reset_timeout=60)
        text = cb.call(client.messages.create, model=..., messages=...)

    Keys (all under cb:<name>:):
        state, failures, last_failure  — breaker state
        health                         — hash of success/failure totals for /api/health
    """

    PREFIX = 'cb'

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=300):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    def _key(self, suffix):
        return f'{self.PREFIX}:{self.name}:{suffix}'

    def _safe(self, op, default=None):
        """Run a Redis operation, swallowing connection errors."""
        try:
            return op()
        except Exception:
            return default

    # ── State ─────────────────────────────────────────────────────────

    @property
    def state(self):
        stored = self._safe(lambda: self.redis.get(self._key('state')), default=CLOSED)
        if stored is None:
            return CLOSED
        if stored == OPEN and self._seconds_since_failure() > self.reset_timeout:
            self._safe(lambda: self.redis.set(self._key('state'), HALF_OPEN))
            return HALF_OPEN
        return stored

    @property
    def failure_count(self):
        val = self._safe(lambda: self.redis.get(self._key('failures')))
        return int(val) if val else 0

    def _seconds_since_failure(self):
        last = self._safe(lambda: self.redis.get(self._key('last_failure')))
        if not last:
            return float('inf')
        return time.time() - float(last)

    # ── Call path ─────────────────────────────────────────────────────

    def call(self, func, *args, **kwargs):
        """Execute func through the breaker; re-raises whatever func raises."""
        if self.state == OPEN:
            retry_after = max(0.0, self.reset_timeout - self._seconds_since_failure())
            raise CircuitOpenError(self.name, retry_after=retry_after)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def _on_success(self):
        def _write():
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.hincrby(self._key('health'), 'success', 1)
            pipe.hset(self._key('health'), 'last_success', str(time.time()))
            pipe.execute()
        self._safe(_write)

    def _on_failure(self, error):
        def _write():
            count = self.redis.incr(self._key('failures'))
            now = str(time.time())
            self.redis.set(self._key('last_failure'), now)
            pipe = self.redis.pipeline()
            pipe.hincrby(self._key('health'), 'failure', 1)
            pipe.hset(self._key('health'), 'last_failure', now)
            pipe.hset(self._key('health'), 'last_error', str(error)[:200])
            pipe.execute()
            return count

        count = self._safe(_write, default=0)
        if count >= self.failure_threshold:
            self._safe(lambda: self.redis.set(self._key('state'), OPEN))
            logger.warning("Circuit '%s' OPENED after %d failures: %s", self.name, count, error)
        elif count:
            logger.info("Circuit '%s' failure %d/%d: %s", self.name, count, self.failure_threshold, error)

    def reset(self):
        """Manually close the breaker."""
        def _write():
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.delete(self._key('last_failure'))
            pipe.execute()
            return True

        if self._safe(_write, default=False):
            logger.info("Circuit '%s' manually reset to CLOSED", self.name)
            return True
        logger.error("Failed to reset circuit '%s'", self.name)
        return False

    # ── Health ────────────────────────────────────────────────────────

    def get_health(self):
        """Health metrics dict for /api/health."""
        data = self._safe(lambda: self.redis.hgetall(self._key('health')))
        reachable = data is not None
        data = data or {}
        return {
            'name': self.name,
            'state': self.state if reachable else 'unknown',
            'failure_count': self.failure_count,
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(data.get('success', 0)),
            'total_failure': int(data.get('failure', 0)),
            'last_success': float(data['last_success']) if data.get('last_success') else None,
            'last_failure': float(data['last_failure']) if data.get('last_failure') else None,
            'last_error': data.get('last_error', ''),
        }


# ── Registry ──────────────────────────────────────────────────────────────

_registry = {}

# name → (failure_threshold, reset_timeout seconds)
BREAKER_SETTINGS = {
    'anthropic': (5, 60),
    'openai': (5, 60),
    'telegram': (3, 120),
}


def get_breaker(name, redis_client=None, **kwargs):
    """Get or create a named circuit breaker (singleton per name)."""
    if name not in _registry:
        if redis_client is None:
            from app.extensions import redis_client as rc
            redis_client = rc
        threshold, timeout = BREAKER_SETTINGS.get(name, (3, 300))
        kwargs.setdefault('failure_threshold', threshold)
        kwargs.setdefault('reset_timeout', timeout)
        _registry[name] = CircuitBreaker(name, redis_client, **kwargs)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register the standard breakers for every external service."""
    breakers = {
        name: CircuitBreaker(name, redis_client, failure_threshold=threshold, reset_timeout=timeout)
        for name, (threshold, timeout) in BREAKER_SETTINGS.items()
    }
    _registry.update(breakers)
    return breakers
