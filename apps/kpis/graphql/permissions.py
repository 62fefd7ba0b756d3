import strawberry
from strawberry.types import Info
from typing import Any

from apps.authentication.roles import ADMIN, CAMPAIGN_MANAGER, EDITOR, user_roles


class IsAuthenticated(strawberry.BasePermission):
    message = "Authentication required"

    def has_permission(self, source: Any, info: Info, **kwargs) -> bool:
        user = info.context.request.user
        return bool(user and user.is_authenticated)


class CanEditKPIs(strawberry.BasePermission):
    message = "Editing KPIs requires the ADMIN, CAMPAIGN_MANAGER or EDITOR role"

    def has_permission(self, source: Any, info: Info, **kwargs) -> bool:
        return bool(user_roles(info.context.request.user) & {ADMIN, CAMPAIGN_MANAGER, EDITOR})
