from rest_framework.permissions import SAFE_METHODS, BasePermission

from .roles import ADMIN, CAMPAIGN_MANAGER, EDITOR, user_roles


class HasDashboardRole(BasePermission):
    """Reads need authentication; writes need one of ``write_roles``.

    A view narrows the roles with a ``write_roles`` attribute.
    """

    write_roles = (ADMIN, CAMPAIGN_MANAGER, EDITOR)

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        required = getattr(view, 'write_roles', self.write_roles)
        return bool(user_roles(request.user) & set(required))

