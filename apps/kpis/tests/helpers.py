from datetime import date, datetime, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from apps.accounts.models import Account
from apps.campaigns.models import Campaign, CampaignAccount
from apps.posts.models import Post

User = get_user_model()


def make_campaign(name='Campaign C', **kwargs):
    defaults = {
        'brand_name': 'Brand',
        'start_date': date(2025, 1, 1),
        'end_date': date(2025, 12, 31),
    }
    defaults.update(kwargs)
    return Campaign.objects.create(name=name, **defaults)


def make_account(name='Account A', **kwargs):
    kwargs.setdefault('account_type', Account.AccountType.CROSSBRAND)
    return Account.objects.create(name=name, **kwargs)


def link(campaign, account):
    return CampaignAccount.objects.create(campaign=campaign, account=account)


def make_post(campaign, account, views=0, **kwargs):
    kwargs.setdefault('post_date', datetime(2025, 3, 3, 12, 0, tzinfo=dt_timezone.utc))
    kwargs.setdefault('post_title', 'Post')
    return Post.objects.create(campaign=campaign, account=account, total_view=views, **kwargs)


def make_user(username='editor', role=None, **kwargs):
    user = User.objects.create_user(
        username=username, email=f'{username}@example.com', password='testpass', **kwargs
    )
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user
