"""Campaign <-> account link lifecycle.

Linking creates the pair's KPI rows and fills them; unlinking only flips the
link state and recalculates, the KPI rows stay as the historical record.
KPI errors raised after the link state change propagate; the link change
itself is already committed by then.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.kpis import engine
from apps.kpis.exceptions import AccountHasPosts, KPIError
from apps.posts.models import Post
from .models import CampaignAccount

logger = logging.getLogger(__name__)


def _set_linked(campaign_id, account_id):
    """Move the pair to LINKED; return True when its state changed."""
    with transaction.atomic():
        link, created = CampaignAccount.objects.select_for_update().get_or_create(
            campaign_id=campaign_id,
            account_id=account_id,
            defaults={'status': CampaignAccount.Status.LINKED},
        )
        if created:
            return True
        if link.is_linked:
            return False
        link.status = CampaignAccount.Status.LINKED
        link.linked_at = timezone.now()
        link.unlinked_at = None
        link.save(update_fields=['status', 'linked_at', 'unlinked_at'])
        return True


def link_account(campaign_id, account_id, *, store=None, timeout=None):
    """Unlinked -> Linked, then initialize and recalculate the pair's KPIs."""
    if not _set_linked(campaign_id, account_id):
        return False
    logger.info(f"Linked account {account_id} to campaign {campaign_id}")
    engine.recalculate_scope(
        campaign_id, account_id, initialize=True, timeout=timeout, store=store
    )
    return True


def ensure_linked(campaign_id, account_id, *, store=None, timeout=None):
    """Implicit link made by the first post of an unlinked pair."""
    linked = link_account(campaign_id, account_id, store=store, timeout=timeout)
    if linked:
        logger.info(f"Account {account_id} implicitly linked to campaign {campaign_id} by a post")
    return linked


def unlink_account(campaign_id, account_id, *, store=None, timeout=None):
    """Linked -> Unlinked, then recalculate the pair's KPIs (rows are kept)."""
    updated = CampaignAccount.objects.filter(
        campaign_id=campaign_id,
        account_id=account_id,
        status=CampaignAccount.Status.LINKED,
    ).update(status=CampaignAccount.Status.UNLINKED, unlinked_at=timezone.now())
    if not updated:
        return False
    logger.info(f"Unlinked account {account_id} from campaign {campaign_id}")
    engine.recalculate_scope(campaign_id, account_id, timeout=timeout, store=store)
    return True


def accounts_with_posts(campaign_id, account_ids):
    return set(
        Post.objects.filter(campaign_id=campaign_id, account_id__in=list(account_ids))
        .values_list('account_id', flat=True)
        .distinct()
    )


def check_unlinkable(campaign_id, account_ids):
    """Refuse to unlink accounts that still have posts in the campaign."""
    blocked = accounts_with_posts(campaign_id, account_ids)
    if blocked:
        raise AccountHasPosts(campaign_id, sorted(blocked))


def sync_membership(campaign_id, account_ids, *, store=None, timeout=None):
    """Make the linked set of a campaign equal ``account_ids``.

    Returns ``(added, removed)`` account ids. Every membership change is
    applied even when a recalculation fails; the first KPI error is raised
    once all accounts were processed.
    """
    current = set(
        CampaignAccount.objects.filter(
            campaign_id=campaign_id, status=CampaignAccount.Status.LINKED
        ).values_list('account_id', flat=True)
    )
    requested = set(account_ids)
    added = sorted(requested - current)
    removed = sorted(current - requested)
    errors = []
    changes = [(unlink_account, account_id) for account_id in removed]
    changes += [(link_account, account_id) for account_id in added]
    for change, account_id in changes:
        try:
            change(campaign_id, account_id, store=store, timeout=timeout)
        except KPIError as e:
            logger.error(f"KPI update failed for account {account_id} in campaign {campaign_id}: {e}")
            errors.append(e)
    if errors:
        raise errors[0]
    return added, removed
