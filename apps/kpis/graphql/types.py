import strawberry
import strawberry_django
from strawberry import auto
from typing import List, Optional

from apps.accounts.models import Account
from apps.campaigns.models import Campaign
from apps.kpis.models import KPI


@strawberry_django.type(Account)
class AccountType:
    id: auto
    name: auto
    tiktok_handle: auto
    account_type: auto
    brand: auto


@strawberry_django.type(Campaign)
class CampaignType:
    id: auto
    name: auto
    brand_name: auto
    status: auto
    start_date: auto
    end_date: auto
    target_views_for_fyp: auto


@strawberry_django.type(KPI)
class KPIType:
    id: auto
    campaign: CampaignType
    account: Optional[AccountType]
    category: auto
    target: int
    actual: int

    @strawberry.field
    def remaining(self) -> int:
        return self.target - self.actual


@strawberry.type
class RecalculationResult:
    campaign_id: int
    account_ids: List[int]
