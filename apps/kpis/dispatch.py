"""When to recalculate: hooks the CRUD layer calls after it mutated posts.

Recalculation here is best effort. A failure is logged and the request that
caused it still succeeds; the next mutation of the scope converges the KPIs.
With ``KPI_RECALC_MODE = "async"`` scopes are queued on Celery instead, and
triggers for a scope that is already queued collapse into that one run.
"""
import logging

from django.conf import settings

from apps.campaigns import membership
from . import engine
from .exceptions import KPIError
from .locks import clear_pending, mark_pending, scope_label
from .store import KPIStore

logger = logging.getLogger(__name__)


def _unique(scopes):
    seen = []
    for scope in scopes:
        if scope not in seen:
            seen.append(scope)
    return seen


def is_async():
    return getattr(settings, 'KPI_RECALC_MODE', 'sync') == 'async'


def schedule_recalculation(campaign_id, account_id):
    """Queue one recalculation of the scope unless one is already pending."""
    from tasks.kpis import recalculate_scope_task

    if not mark_pending(campaign_id, account_id):
        logger.debug(f"Recalculation of {scope_label(campaign_id, account_id)} already queued")
        return False
    try:
        recalculate_scope_task.delay(campaign_id, account_id)
    except Exception as e:
        clear_pending(campaign_id, account_id)
        logger.error(f"Could not queue recalculation of {scope_label(campaign_id, account_id)}: {e}")
        return False
    return True


def request_recalculation(scopes):
    """Recalculate (or queue) each scope once; returns the scopes handled."""
    scopes = _unique(scopes)
    for campaign_id, account_id in scopes:
        if is_async():
            schedule_recalculation(campaign_id, account_id)
            continue
        try:
            engine.recalculate_scope(campaign_id, account_id)
        except KPIError:
            logger.exception(f"KPI recalculation failed for {scope_label(campaign_id, account_id)}")
    return scopes


def _link_implicitly(campaign_id, account_id):
    try:
        return membership.ensure_linked(campaign_id, account_id)
    except KPIError:
        logger.exception(f"Implicit link of account {account_id} to campaign {campaign_id} failed")
        return False


def post_created(post):
    scopes = []
    if not _link_implicitly(post.campaign_id, post.account_id):
        scopes.append((post.campaign_id, post.account_id))
    scopes.append((post.campaign_id, None))
    return request_recalculation(scopes)


def post_updated(before, post):
    """``before`` is ``post.scope_snapshot()`` taken ahead of the update."""
    after = post.scope_snapshot()
    if before == after:
        return []
    scopes = [
        (before['campaign_id'], before['account_id']),
        (before['campaign_id'], None),
    ]
    moved = (before['campaign_id'], before['account_id']) != (after['campaign_id'], after['account_id'])
    if moved and _link_implicitly(after['campaign_id'], after['account_id']):
        scopes.append((after['campaign_id'], None))
    else:
        scopes += [(after['campaign_id'], after['account_id']), (after['campaign_id'], None)]
    return request_recalculation(scopes)


def post_deleted(snapshot):
    """``snapshot`` is ``post.scope_snapshot()`` of the deleted post."""
    return request_recalculation([
        (snapshot['campaign_id'], snapshot['account_id']),
        (snapshot['campaign_id'], None),
    ])


def link(campaign_id, account_id):
    """Explicit link. The link itself is committed before any KPI work."""
    try:
        return membership.link_account(campaign_id, account_id)
    except KPIError:
        logger.exception(f"KPI initialization failed after linking account {account_id} to campaign {campaign_id}")
        return True


def unlink(campaign_id, account_id):
    """Explicit unlink; raises ``AccountHasPosts`` while the pair has posts."""
    membership.check_unlinkable(campaign_id, [account_id])
    try:
        return membership.unlink_account(campaign_id, account_id)
    except KPIError:
        logger.exception(f"KPI recalculation failed after unlinking account {account_id} from campaign {campaign_id}")
        return True


def _linked_accounts(campaign_id):
    return set(account_id for _, account_id in KPIStore().list_links(campaign_id=campaign_id))


def check_campaign_accounts(campaign_id, account_ids):
    """Raise ``AccountHasPosts`` if the edit would drop an account with posts."""
    membership.check_unlinkable(campaign_id, _linked_accounts(campaign_id) - set(account_ids))


def membership_updated(campaign_id, account_ids):
    """Campaign membership replaced by ``account_ids``; returns (added, removed).

    Raises ``AccountHasPosts`` before changing anything when a removed
    account still has posts in the campaign.
    """
    current = _linked_accounts(campaign_id)
    requested = set(account_ids)
    check_campaign_accounts(campaign_id, requested)
    try:
        membership.sync_membership(campaign_id, requested)
    except KPIError:
        logger.exception(f"KPI recalculation failed while updating members of campaign {campaign_id}")
    return sorted(requested - current), sorted(current - requested)


def campaign_inputs_changed(campaign_id):
    """A campaign field read by the aggregates changed; redo every scope of it."""
    scopes = [(campaign_id, None)]
    scopes += [(campaign_id, account_id) for account_id in sorted(_linked_accounts(campaign_id))]
    return request_recalculation(scopes)


def _linked_campaigns(account_id):
    return set(campaign_id for campaign_id, _ in KPIStore().list_links(account_id=account_id))


def check_account_campaigns(account_id, campaign_ids):
    """Raise ``AccountHasPosts`` if the edit would drop a campaign with posts."""
    for campaign_id in sorted(_linked_campaigns(account_id) - set(campaign_ids)):
        membership.check_unlinkable(campaign_id, [account_id])


def account_campaigns_updated(account_id, campaign_ids):
    """Account-side membership edit; returns (linked, unlinked) campaign ids."""
    current = _linked_campaigns(account_id)
    requested = set(campaign_ids)
    removed = sorted(current - requested)
    check_account_campaigns(account_id, requested)
    for campaign_id in removed:
        unlink(campaign_id, account_id)
    added = sorted(requested - current)
    for campaign_id in added:
        link(campaign_id, account_id)
    return added, removed
