class KPIError(Exception):
    """Base error of the KPI engine."""


class StoreError(KPIError):
    """A persistence call made by the engine failed.

    The database error is kept as ``__cause__``.
    """

    def __init__(self, operation, message=None):
        self.operation = operation
        super().__init__(message or f"{operation} failed")


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass


class RecalculationTimeout(KPIError):
    def __init__(self, operation):
        self.operation = operation
        super().__init__(f"Deadline expired before {operation}")


class ScopeBusy(KPIError):
    def __init__(self, scope):
        self.scope = scope
        super().__init__(f"KPI scope {scope} is locked by another recalculation")


class CampaignNotFound(KPIError):
    def __init__(self, campaign_id):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign {campaign_id} does not exist")


class AccountHasPosts(KPIError):
    def __init__(self, campaign_id, account_ids):
        self.campaign_id = campaign_id
        self.account_ids = list(account_ids)
        super().__init__(
            "Cannot remove account from campaign: There are existing posts "
            "using this account in this campaign"
        )
