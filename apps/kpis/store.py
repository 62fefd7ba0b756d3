"""Data access used by the KPI engine.

Every call takes an optional ``Deadline``. An expired deadline stops the call
before any I/O. Transient ``OperationalError``s are retried a bounded number
of times and never past the deadline; whatever database error remains is
raised as ``StoreReadError`` or ``StoreWriteError``.
"""
import logging
import time
from functools import wraps

from django.conf import settings
from django.db import DatabaseError, OperationalError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.stop import stop_base

from apps.campaigns.models import Campaign, CampaignAccount
from apps.posts.models import Post
from .exceptions import RecalculationTimeout, StoreReadError, StoreWriteError
from .models import KPI
from .performance import monitor_query_performance

logger = logging.getLogger(__name__)

# list_posts()/list_kpis() without an account filter; None would mean the
# campaign-wide scope.
ALL_ACCOUNTS = object()

POST_AGGREGATE_COLUMNS = ('id', 'campaign_id', 'account_id') + Post.AGGREGATE_FIELDS


class Deadline:
    def __init__(self, seconds):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    @classmethod
    def after(cls, seconds):
        if seconds is None:
            return None
        return cls(seconds)

    def remaining(self):
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self):
        return time.monotonic() >= self.expires_at

    def check(self, operation):
        if self.expired():
            raise RecalculationTimeout(operation)

    def __repr__(self):
        return f"Deadline(remaining={self.remaining():.3f}s)"


class stop_at_deadline(stop_base):
    def __init__(self, deadline):
        self.deadline = deadline

    def __call__(self, retry_state):
        return self.deadline is not None and self.deadline.expired()


def _store_call(error_class):
    def decorator(func):
        operation = func.__name__

        @wraps(func)
        def wrapper(self, *args, deadline=None, **kwargs):
            if deadline is not None:
                deadline.check(operation)
            retrying = Retrying(
                stop=stop_after_attempt(self.retries) | stop_at_deadline(deadline),
                wait=wait_exponential(multiplier=self.backoff, max=2),
                retry=retry_if_exception_type(OperationalError),
                reraise=True,
            )
            try:
                return retrying(func, self, *args, **kwargs)
            except DatabaseError as e:
                logger.error(f"KPI store {operation} failed: {e}")
                raise error_class(operation, f"{operation} failed: {e}") from e

        return monitor_query_performance(wrapper)
    return decorator


_reads = _store_call(StoreReadError)
_writes = _store_call(StoreWriteError)


class KPIStore:
    """ORM-backed store for the engine; stateless apart from its settings."""

    def __init__(self, default_target=None, retries=None, backoff=0.1):
        if default_target is None:
            default_target = getattr(settings, 'KPI_DEFAULT_TARGET', 0)
        if retries is None:
            retries = getattr(settings, 'KPI_STORE_RETRIES', 3)
        self.default_target = default_target
        self.retries = max(1, retries)
        self.backoff = backoff

    @_reads
    def get_campaign(self, campaign_id):
        return (
            Campaign.objects.filter(pk=campaign_id)
            .only('id', 'target_views_for_fyp')
            .first()
        )

    @_reads
    def list_posts(self, campaign_id, account_id=ALL_ACCOUNTS):
        posts = Post.objects.filter(campaign_id=campaign_id)
        if account_id is not ALL_ACCOUNTS:
            posts = posts.filter(account_id=account_id)
        return list(posts.only(*POST_AGGREGATE_COLUMNS).order_by('id'))

    @_reads
    def get_kpi(self, campaign_id, account_id, category):
        return KPI.objects.filter(
            campaign_id=campaign_id, account_id=account_id, category=category
        ).first()

    @_reads
    def list_kpis(self, campaign_id, account_id=ALL_ACCOUNTS):
        kpis = KPI.objects.filter(campaign_id=campaign_id)
        if account_id is not ALL_ACCOUNTS:
            kpis = kpis.filter(account_id=account_id)
        return list(kpis.order_by('account_id', 'category'))

    @_reads
    def list_links(self, campaign_id=None, account_id=None):
        links = CampaignAccount.objects.filter(status=CampaignAccount.Status.LINKED)
        if campaign_id is not None:
            links = links.filter(campaign_id=campaign_id)
        if account_id is not None:
            links = links.filter(account_id=account_id)
        return list(links.order_by('campaign_id', 'account_id').values_list('campaign_id', 'account_id'))

    @_writes
    def upsert_kpi(self, campaign_id, account_id, category, actual, target=None):
        """Write ``actual``; ``target`` only when given, or on creation."""
        defaults = {'actual': actual}
        if target is not None:
            defaults['target'] = target
        kpi, _ = KPI.objects.update_or_create(
            campaign_id=campaign_id,
            account_id=account_id,
            category=category,
            defaults=defaults,
            create_defaults={
                'actual': actual,
                'target': self.default_target if target is None else target,
            },
        )
        return kpi

    @_writes
    def create_kpi_if_absent(self, campaign_id, account_id, category, target=None):
        return KPI.objects.get_or_create(
            campaign_id=campaign_id,
            account_id=account_id,
            category=category,
            defaults={
                'actual': 0,
                'target': self.default_target if target is None else target,
            },
        )
