"""KPI recalculation engine.

Each call recomputes the aggregates of one scope from the posts currently in
it and writes them with one target-preserving upsert per category. There is
no transaction around the read and the writes: callers that may race on the
same scope hold ``apps.kpis.locks.scope_lock`` around the call, or go
through ``recalculate_scope`` which does.
"""
import logging

from django.conf import settings

from . import aggregates
from .exceptions import CampaignNotFound
from .locks import scope_label, scope_lock
from .store import ALL_ACCOUNTS, Deadline, KPIStore

logger = logging.getLogger(__name__)


def _context_for(store, campaign_id, deadline):
    campaign = store.get_campaign(campaign_id, deadline=deadline)
    if campaign is None:
        raise CampaignNotFound(campaign_id)
    return aggregates.AggregationContext.for_campaign(
        campaign, getattr(settings, 'KPI_VIDEO_CONTENT_TYPES', ('video',))
    )


def _write_totals(store, campaign_id, account_id, totals, deadline):
    kpis = {}
    for category, actual in totals.items():
        kpis[category] = store.upsert_kpi(
            campaign_id, account_id, category, actual, deadline=deadline
        )
    return kpis


def recalculate_account_kpis(campaign_id, account_id, *, store=None, deadline=None):
    """Recompute the KPIs of one account within one campaign.

    Returns the upserted rows keyed by category. A failed write leaves the
    categories written before it updated.
    """
    store = store or KPIStore()
    context = _context_for(store, campaign_id, deadline)
    posts = store.list_posts(campaign_id, account_id, deadline=deadline)
    totals = aggregates.compute_all(posts, context)
    kpis = _write_totals(store, campaign_id, account_id, totals, deadline)
    logger.info(
        f"Recalculated KPIs for scope {scope_label(campaign_id, account_id)} "
        f"from {len(posts)} posts"
    )
    return kpis


def recalculate_campaign_kpis(campaign_id, *, store=None, deadline=None):
    """Recompute the campaign-wide KPIs over every post of the campaign.

    Posts of accounts that are no longer linked still count.
    """
    store = store or KPIStore()
    context = _context_for(store, campaign_id, deadline)
    posts = store.list_posts(campaign_id, ALL_ACCOUNTS, deadline=deadline)
    totals = aggregates.compute_all(posts, context)
    kpis = _write_totals(store, campaign_id, None, totals, deadline)
    logger.info(
        f"Recalculated KPIs for scope {scope_label(campaign_id, None)} "
        f"from {len(posts)} posts"
    )
    return kpis


def initialize_account_kpis(campaign_id, account_id, *, store=None, deadline=None):
    """Create the missing KPI rows of a scope with ``actual = 0``.

    Existing rows are left alone, so calling this again is a no-op. Returns
    the rows it created.
    """
    store = store or KPIStore()
    created_rows = []
    for category in aggregates.supported_categories():
        kpi, created = store.create_kpi_if_absent(
            campaign_id, account_id, category, deadline=deadline
        )
        if created:
            created_rows.append(kpi)
    if created_rows:
        logger.info(
            f"Initialized {len(created_rows)} KPI rows for scope "
            f"{scope_label(campaign_id, account_id)}"
        )
    return created_rows


def recalculate_scope(campaign_id, account_id, *, initialize=False, timeout=None, store=None):
    """Serialized entry point: lock the scope, then (initialize and) recalculate.

    ``account_id=None`` selects the campaign-wide scope. ``timeout`` bounds
    the store I/O and defaults to ``KPI_RECALC_TIMEOUT``.
    """
    store = store or KPIStore()
    if timeout is None:
        timeout = getattr(settings, 'KPI_RECALC_TIMEOUT', None)
    with scope_lock(campaign_id, account_id):
        deadline = Deadline.after(timeout)
        if account_id is None:
            return recalculate_campaign_kpis(campaign_id, store=store, deadline=deadline)
        if initialize:
            initialize_account_kpis(campaign_id, account_id, store=store, deadline=deadline)
        return recalculate_account_kpis(campaign_id, account_id, store=store, deadline=deadline)


def recalculate_campaign_tree(campaign_id, *, timeout=None, store=None):
    """Campaign-wide scope plus every currently linked account, one lock per scope."""
    store = store or KPIStore()
    recalculate_scope(campaign_id, None, timeout=timeout, store=store)
    account_ids = [account_id for _, account_id in store.list_links(campaign_id=campaign_id)]
    for account_id in account_ids:
        recalculate_scope(campaign_id, account_id, timeout=timeout, store=store)
    return account_ids
