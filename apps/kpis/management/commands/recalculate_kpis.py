from django.core.management.base import BaseCommand, CommandError

from apps.campaigns.models import Campaign
from apps.kpis import engine
from apps.kpis.exceptions import KPIError
from apps.kpis.store import KPIStore


class Command(BaseCommand):
    help = 'Recalculate KPIs from the current posts'

    def add_arguments(self, parser):
        parser.add_argument('--campaign', type=int, help='Only this campaign')
        parser.add_argument('--account', type=int, help='Only this account')
        parser.add_argument('--timeout', type=float, default=None, help='Seconds allowed per scope')

    def handle(self, *args, **options):
        campaign_id = options['campaign']
        account_id = options['account']
        self.timeout = options['timeout']
        self.store = KPIStore()

        try:
            if campaign_id and account_id:
                self.recalculate_pair(campaign_id, account_id)
            elif campaign_id:
                self.recalculate_campaign(campaign_id)
            elif account_id:
                self.recalculate_account(account_id)
            else:
                self.recalculate_all()
        except KPIError as e:
            raise CommandError(str(e))

    def recalculate_pair(self, campaign_id, account_id):
        engine.recalculate_scope(campaign_id, account_id, timeout=self.timeout, store=self.store)
        engine.recalculate_scope(campaign_id, None, timeout=self.timeout, store=self.store)
        self.stdout.write(self.style.SUCCESS(
            f'✅ Recalculated KPIs for account {account_id} and campaign {campaign_id}'
        ))

    def recalculate_campaign(self, campaign_id):
        account_ids = engine.recalculate_campaign_tree(campaign_id, timeout=self.timeout, store=self.store)
        self.stdout.write(self.style.SUCCESS(
            f'✅ Recalculated KPIs for campaign {campaign_id} ({len(account_ids)} accounts)'
        ))

    def recalculate_account(self, account_id):
        campaign_ids = [c for c, _ in self.store.list_links(account_id=account_id)]
        for campaign_id in campaign_ids:
            self.recalculate_pair(campaign_id, account_id)
        self.stdout.write(self.style.SUCCESS(
            f'✅ Recalculated KPIs for account {account_id} ({len(campaign_ids)} campaigns)'
        ))

    def recalculate_all(self):
        campaign_ids = list(Campaign.objects.order_by('id').values_list('id', flat=True))
        if not campaign_ids:
            self.stdout.write('No campaigns found.')
            return

        failed = []
        for campaign_id in campaign_ids:
            try:
                self.recalculate_campaign(campaign_id)
            except KPIError as e:
                self.stderr.write(f'❌ Campaign {campaign_id}: {e}')
                failed.append(campaign_id)

        if failed:
            raise CommandError(f'Failed to recalculate {len(failed)} of {len(campaign_ids)} campaigns: {failed}')
        self.stdout.write(self.style.SUCCESS(f'✅ Recalculated KPIs for {len(campaign_ids)} campaigns'))
