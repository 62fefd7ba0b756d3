from celery import shared_task
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
import logging

from apps.kpis import engine
from apps.kpis.exceptions import CampaignNotFound, KPIError, ScopeBusy, StoreError
from apps.kpis.locks import clear_pending, scope_label

logger = logging.getLogger(__name__)


@shared_task
@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((ScopeBusy, StoreError)),
    reraise=True,
)
def recalculate_scope_task(campaign_id, account_id=None):
    """Recalculate one queued scope (account_id None = campaign-wide)."""
    # Cleared before reading posts: a trigger arriving from here on queues a new run
    clear_pending(campaign_id, account_id)
    try:
        kpis = engine.recalculate_scope(campaign_id, account_id)
    except CampaignNotFound:
        logger.info(f"Campaign {campaign_id} is gone, skipping {scope_label(campaign_id, account_id)}")
        return {'scope': scope_label(campaign_id, account_id), 'status': 'skipped'}

    return {
        'scope': scope_label(campaign_id, account_id),
        'status': 'recalculated',
        'actuals': {str(category): kpi.actual for category, kpi in kpis.items()},
    }


@shared_task
@retry(stop=stop_after_attempt(2), retry=retry_if_exception_type(ScopeBusy), reraise=True)
def recalculate_campaign_task(campaign_id):
    """Campaign-wide KPIs plus every linked account of one campaign."""
    account_ids = engine.recalculate_campaign_tree(campaign_id)
    logger.info(f"Recalculated KPIs for campaign {campaign_id} ({len(account_ids)} accounts)")
    return {'campaign_id': campaign_id, 'accounts_processed': len(account_ids)}


@shared_task
def recalculate_all_kpis():
    """Nightly full recomputation; one failing campaign does not stop the rest."""
    from apps.campaigns.models import Campaign

    processed = []
    failed = []
    for campaign_id in Campaign.objects.order_by('id').values_list('id', flat=True):
        try:
            engine.recalculate_campaign_tree(campaign_id)
            processed.append(campaign_id)
        except KPIError as e:
            logger.error(f"Failed to recalculate KPIs for campaign {campaign_id}: {e}")
            failed.append(campaign_id)

    logger.info(f"Recalculated KPIs for {len(processed)} campaigns, {len(failed)} failed")
    return {'campaigns_processed': len(processed), 'failed': failed}
