import strawberry
from typing import List, Optional

from apps.campaigns.models import Campaign
from apps.kpis.models import KPI
from .permissions import IsAuthenticated
from .types import CampaignType, KPIType


@strawberry.type
class KPIQueries:

    @strawberry.field(permission_classes=[IsAuthenticated])
    def campaigns(self) -> List[CampaignType]:
        return Campaign.objects.all()

    @strawberry.field(permission_classes=[IsAuthenticated])
    def campaign(self, id: int) -> Optional[CampaignType]:
        return Campaign.objects.filter(id=id).first()

    @strawberry.field(permission_classes=[IsAuthenticated])
    def kpis(
        self,
        campaign_id: int,
        account_id: Optional[int] = None,
        campaign_wide: bool = False,
    ) -> List[KPIType]:
        kpis = KPI.objects.select_related('campaign', 'account').filter(campaign_id=campaign_id)
        if campaign_wide:
            kpis = kpis.filter(account__isnull=True)
        elif account_id is not None:
            kpis = kpis.filter(account_id=account_id)
        return kpis.order_by('account_id', 'category')
