"""Per-scope serialization of KPI recalculations.

Locks and pending markers live in the Django cache; deployed settings point it
at Redis so web processes and Celery workers share them.
"""
import logging
import uuid

from django.conf import settings
from django.core.cache import cache
from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay, wait_exponential

from .exceptions import ScopeBusy

logger = logging.getLogger(__name__)


def scope_label(campaign_id, account_id):
    return f"{campaign_id}:{'campaign' if account_id is None else account_id}"


def _lock_key(campaign_id, account_id):
    return f"kpi:lock:{scope_label(campaign_id, account_id)}"


def _pending_key(campaign_id, account_id):
    return f"kpi:pending:{scope_label(campaign_id, account_id)}"


class ScopeLock:
    """Mutex for one (campaign, account) scope.

    ``cache.add`` only writes when the key is absent, which makes it the
    acquire. The TTL frees scopes whose holder died mid-recalculation.
    """

    def __init__(self, campaign_id, account_id, ttl=None, wait=None):
        self.campaign_id = campaign_id
        self.account_id = account_id
        self.key = _lock_key(campaign_id, account_id)
        self.ttl = ttl if ttl is not None else settings.KPI_SCOPE_LOCK_TTL
        self.wait = wait if wait is not None else settings.KPI_SCOPE_LOCK_WAIT
        self.token = None

    def _try_acquire(self, token):
        return cache.add(self.key, token, self.ttl)

    def acquire(self):
        token = uuid.uuid4().hex
        retrying = Retrying(
            stop=stop_after_delay(self.wait),
            wait=wait_exponential(multiplier=0.01, max=0.25),
            retry=retry_if_result(lambda acquired: not acquired),
        )
        try:
            retrying(self._try_acquire, token)
        except RetryError:
            logger.warning(f"Timed out waiting for KPI scope {scope_label(self.campaign_id, self.account_id)}")
            raise ScopeBusy(scope_label(self.campaign_id, self.account_id))
        self.token = token
        return self

    def release(self):
        if self.token is None:
            return
        if cache.get(self.key) == self.token:
            cache.delete(self.key)
        self.token = None

    def locked(self):
        return cache.get(self.key) is not None

    def __enter__(self):
        return self.acquire()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def scope_lock(campaign_id, account_id, **kwargs):
    return ScopeLock(campaign_id, account_id, **kwargs)


def mark_pending(campaign_id, account_id, ttl=None):
    """Return True when no recalculation of the scope was already queued."""
    ttl = ttl if ttl is not None else settings.KPI_SCOPE_LOCK_TTL
    return cache.add(_pending_key(campaign_id, account_id), 1, ttl)


def clear_pending(campaign_id, account_id):
    cache.delete(_pending_key(campaign_id, account_id))


def is_pending(campaign_id, account_id):
    return cache.get(_pending_key(campaign_id, account_id)) is not None
