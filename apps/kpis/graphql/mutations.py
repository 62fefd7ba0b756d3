import strawberry

from apps.kpis import engine
from apps.kpis.models import KPI
from .permissions import CanEditKPIs
from .types import KPIType, RecalculationResult


@strawberry.type
class KPIMutations:

    @strawberry.mutation(permission_classes=[CanEditKPIs])
    def set_kpi_target(self, id: int, target: int) -> KPIType:
        if target < 0:
            raise ValueError("target must be a non-negative integer")
        kpi = KPI.objects.select_related('campaign', 'account').get(id=id)
        kpi.target = target
        kpi.save(update_fields=['target', 'updated_at'])
        return kpi

    @strawberry.mutation(permission_classes=[CanEditKPIs])
    def recalculate_campaign(self, campaign_id: int) -> RecalculationResult:
        account_ids = engine.recalculate_campaign_tree(campaign_id)
        return RecalculationResult(campaign_id=campaign_id, account_ids=account_ids)
