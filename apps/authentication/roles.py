# Dashboard roles are Django groups of the same name
ADMIN = 'ADMIN'
CAMPAIGN_MANAGER = 'CAMPAIGN_MANAGER'
EDITOR = 'EDITOR'
VIEWER = 'VIEWER'

ALL_ROLES = (ADMIN, CAMPAIGN_MANAGER, EDITOR, VIEWER)


def user_roles(user):
    if not user or not user.is_authenticated:
        return set()
    if user.is_superuser:
        return set(ALL_ROLES)
    return set(user.groups.filter(name__in=ALL_ROLES).values_list('name', flat=True))
