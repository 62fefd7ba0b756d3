from django.core.cache import cache
from django.test import TestCase, override_settings

from apps.kpis import engine
from apps.kpis.aggregates import supported_categories
from apps.kpis.exceptions import CampaignNotFound, ScopeBusy
from apps.kpis.locks import scope_lock
from apps.kpis.models import KPI, KPICategory
from .helpers import link, make_account, make_campaign, make_post


def actuals(campaign, account):
    return dict(
        KPI.objects.filter(campaign=campaign, account=account).values_list('category', 'actual')
    )


class AccountRecalculationTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign(target_views_for_fyp=150)
        self.account = make_account()
        link(self.campaign, self.account)

    def test_account_scope_totals(self):
        for views in (100, 200, 50):
            make_post(self.campaign, self.account, views=views)

        kpis = engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        self.assertEqual(kpis[KPICategory.VIEWS].actual, 350)
        self.assertEqual(kpis[KPICategory.QTY_POST].actual, 3)
        self.assertEqual(kpis[KPICategory.FYP_COUNT].actual, 1)
        self.assertEqual(set(kpis), set(supported_categories()))

    def test_only_posts_of_the_scope_count(self):
        other_account = make_account('Account B')
        other_campaign = make_campaign('Campaign D')
        make_post(self.campaign, self.account, views=10)
        make_post(self.campaign, other_account, views=1000)
        make_post(other_campaign, self.account, views=1000)

        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        self.assertEqual(actuals(self.campaign, self.account)['VIEWS'], 10)

    def test_recalculation_is_idempotent(self):
        make_post(self.campaign, self.account, views=100)
        engine.recalculate_account_kpis(self.campaign.id, self.account.id)
        first = actuals(self.campaign, self.account)
        rows = KPI.objects.count()

        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        self.assertEqual(actuals(self.campaign, self.account), first)
        self.assertEqual(KPI.objects.count(), rows)

    def test_deleting_the_last_post_zeroes_the_rows(self):
        post = make_post(self.campaign, self.account, views=100)
        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        post.delete()
        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        values = actuals(self.campaign, self.account)
        self.assertEqual(values['VIEWS'], 0)
        self.assertEqual(values['QTY_POST'], 0)
        self.assertEqual(len(values), len(supported_categories()))

    def test_existing_target_is_preserved(self):
        KPI.objects.create(
            campaign=self.campaign, account=self.account, category=KPICategory.VIEWS, target=5000
        )
        make_post(self.campaign, self.account, views=100)

        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        kpi = KPI.objects.get(campaign=self.campaign, account=self.account, category=KPICategory.VIEWS)
        self.assertEqual(kpi.target, 5000)
        self.assertEqual(kpi.actual, 100)

    @override_settings(KPI_DEFAULT_TARGET=0)
    def test_rows_created_by_recalculation_get_the_default_target(self):
        engine.recalculate_account_kpis(self.campaign.id, self.account.id)
        targets = set(KPI.objects.filter(account=self.account).values_list('target', flat=True))
        self.assertEqual(targets, {0})

    def test_manual_category_is_never_touched(self):
        gmv = KPI.objects.create(
            campaign=self.campaign, account=self.account,
            category=KPICategory.GMV_IDR, target=10 ** 9, actual=12345,
        )
        make_post(self.campaign, self.account, views=100)

        engine.recalculate_account_kpis(self.campaign.id, self.account.id)

        gmv.refresh_from_db()
        self.assertEqual(gmv.actual, 12345)
        self.assertEqual(gmv.target, 10 ** 9)

    def test_unknown_campaign(self):
        with self.assertRaises(CampaignNotFound):
            engine.recalculate_account_kpis(self.campaign.id + 100, self.account.id)


class CampaignRecalculationTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign()
        self.account_a = make_account('Account A')
        self.account_b = make_account('Account B')
        link(self.campaign, self.account_a)
        link(self.campaign, self.account_b)

    def test_campaign_scope_sums_every_account(self):
        make_post(self.campaign, self.account_a, views=100)
        make_post(self.campaign, self.account_a, views=200)
        make_post(self.campaign, self.account_b, views=300)

        kpis = engine.recalculate_campaign_kpis(self.campaign.id)

        self.assertEqual(kpis[KPICategory.VIEWS].actual, 600)
        self.assertEqual(kpis[KPICategory.QTY_POST].actual, 3)
        self.assertIsNone(kpis[KPICategory.VIEWS].account_id)

    def test_campaign_scope_equals_sum_of_account_scopes(self):
        make_post(self.campaign, self.account_a, views=100, content_type='video', yellow_cart=True)
        make_post(self.campaign, self.account_b, views=300, total_like=7)

        campaign_kpis = engine.recalculate_campaign_kpis(self.campaign.id)
        a = engine.recalculate_account_kpis(self.campaign.id, self.account_a.id)
        b = engine.recalculate_account_kpis(self.campaign.id, self.account_b.id)

        for category, kpi in campaign_kpis.items():
            self.assertEqual(kpi.actual, a[category].actual + b[category].actual)

    def test_campaign_tree_covers_linked_accounts(self):
        make_post(self.campaign, self.account_a, views=100)

        account_ids = engine.recalculate_campaign_tree(self.campaign.id)

        self.assertEqual(sorted(account_ids), sorted([self.account_a.id, self.account_b.id]))
        self.assertEqual(actuals(self.campaign, None)['VIEWS'], 100)
        self.assertEqual(actuals(self.campaign, self.account_b)['VIEWS'], 0)


class InitializationTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign()
        self.account = make_account()

    def test_scope_has_no_rows_before_initialization(self):
        self.assertFalse(KPI.objects.filter(campaign=self.campaign, account=self.account).exists())

    def test_initialization_creates_zero_rows(self):
        created = engine.initialize_account_kpis(self.campaign.id, self.account.id)

        self.assertEqual(len(created), len(supported_categories()))
        self.assertEqual(set(actuals(self.campaign, self.account).values()), {0})

    def test_initialization_is_not_destructive(self):
        engine.initialize_account_kpis(self.campaign.id, self.account.id)
        KPI.objects.filter(category=KPICategory.VIEWS).update(target=900, actual=40)

        created = engine.initialize_account_kpis(self.campaign.id, self.account.id)

        self.assertEqual(created, [])
        kpi = KPI.objects.get(campaign=self.campaign, account=self.account, category=KPICategory.VIEWS)
        self.assertEqual((kpi.target, kpi.actual), (900, 40))

    def test_recalculate_scope_initializes_then_fills(self):
        make_post(self.campaign, self.account, views=25)

        kpis = engine.recalculate_scope(self.campaign.id, self.account.id, initialize=True)

        self.assertEqual(kpis[KPICategory.VIEWS].actual, 25)

    def test_recalculate_scope_without_account_is_campaign_wide(self):
        make_post(self.campaign, self.account, views=25)

        kpis = engine.recalculate_scope(self.campaign.id, None)

        self.assertTrue(all(kpi.account_id is None for kpi in kpis.values()))

    @override_settings(KPI_SCOPE_LOCK_WAIT=0)
    def test_recalculate_scope_waits_for_the_scope_lock(self):
        with scope_lock(self.campaign.id, self.account.id):
            with self.assertRaises(ScopeBusy):
                engine.recalculate_scope(self.campaign.id, self.account.id)
        self.assertFalse(KPI.objects.filter(account=self.account).exists())
