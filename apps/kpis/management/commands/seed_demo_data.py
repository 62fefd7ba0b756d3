import random
from datetime import date, timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.accounts.models import Account
from apps.campaigns.models import Campaign
from apps.kpis import dispatch, engine
from apps.kpis.models import KPI, KPICategory
from apps.posts.models import Post


class Command(BaseCommand):
    help = 'Create a demo campaign with accounts, posts and KPI targets'

    def add_arguments(self, parser):
        parser.add_argument('--accounts', type=int, default=3, help='Number of accounts to link')
        parser.add_argument('--posts', type=int, default=10, help='Posts per account')
        parser.add_argument('--seed', type=int, default=None, help='Random seed')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])

        self.stdout.write(self.style.SUCCESS('🚀 Creating demo data...'))

        campaign = self.ensure_campaign()
        accounts = self.ensure_accounts(options['accounts'])
        for account in accounts:
            dispatch.link(campaign.id, account.id)

        created = self.create_posts(campaign, accounts, options['posts'], rng)
        self.set_targets(campaign)

        # One pass at the end instead of relying on every per-post hook
        account_ids = engine.recalculate_campaign_tree(campaign.id)
        self.show_stats(campaign, created, len(account_ids))

    def ensure_campaign(self):
        today = date.today()
        campaign, created = Campaign.objects.get_or_create(
            name='Demo Campaign',
            defaults={
                'brand_name': 'Demo Brand',
                'categories': ['beauty', 'lifestyle'],
                'start_date': today - timedelta(days=30),
                'end_date': today + timedelta(days=30),
                'target_views_for_fyp': 10000,
            }
        )
        if created:
            self.stdout.write(f'✅ Created campaign: {campaign.name}')
        return campaign

    def ensure_accounts(self, count):
        accounts = []
        for i in range(1, count + 1):
            account, created = Account.objects.get_or_create(
                tiktok_handle=f'demo_creator_{i}',
                defaults={
                    'name': f'Demo Creator {i}',
                    'account_type': Account.AccountType.CROSSBRAND if i % 2 else Account.AccountType.BRAND_SPECIFIC,
                    'brand': 'Demo Brand',
                }
            )
            if created:
                self.stdout.write(f'✅ Created account: {account.name}')
            accounts.append(account)
        return accounts

    def create_posts(self, campaign, accounts, per_account, rng):
        posts = []
        now = timezone.now()
        for account in accounts:
            for i in range(per_account):
                views = rng.randint(500, 50000)
                post = Post(
                    campaign=campaign,
                    account=account,
                    post_date=now - timedelta(days=rng.randint(0, 29), hours=rng.randint(0, 23)),
                    post_title=f'{account.name} post #{i + 1}',
                    content_type=rng.choice(['video', 'video', 'photo', 'carousel']),
                    content_category=rng.choice(campaign.categories or ['general']),
                    status='published',
                    fyp_type=rng.choice([Post.FypType.ORGANIC, Post.FypType.ADS]),
                    yellow_cart=rng.random() < 0.3,
                    total_view=views,
                    total_like=int(views * rng.uniform(0.02, 0.12)),
                    total_comment=int(views * rng.uniform(0.001, 0.01)),
                    total_share=int(views * rng.uniform(0.001, 0.02)),
                    total_saved=int(views * rng.uniform(0.001, 0.015)),
                )
                # save() derives post_day; bulk_create would skip it
                post.save()
                posts.append(post)
        return len(posts)

    def set_targets(self, campaign):
        targets = {
            KPICategory.VIEWS: 500000,
            KPICategory.LIKES: 30000,
            KPICategory.QTY_POST: 30,
            KPICategory.FYP_COUNT: 10,
        }
        for category, target in targets.items():
            kpi, _ = KPI.objects.get_or_create(
                campaign=campaign, account=None, category=category,
                defaults={'target': target},
            )
            if kpi.target != target:
                kpi.target = target
                kpi.save(update_fields=['target', 'updated_at'])

    def show_stats(self, campaign, posts_created, accounts):
        self.stdout.write(self.style.SUCCESS(
            f'✅ Created {posts_created} posts for {accounts} accounts in "{campaign.name}"'
        ))
        for kpi in KPI.objects.filter(campaign=campaign, account__isnull=True).order_by('category'):
            self.stdout.write(f'   {kpi.category}: {kpi.actual} / {kpi.target}')
