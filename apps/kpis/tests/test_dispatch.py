from unittest import mock

from django.core.cache import cache
from django.test import TestCase, override_settings

from apps.campaigns.models import CampaignAccount
from apps.kpis import dispatch, engine
from apps.kpis.exceptions import AccountHasPosts, StoreWriteError
from apps.kpis.locks import is_pending
from apps.kpis.models import KPI
from tasks.kpis import recalculate_scope_task
from .helpers import link, make_account, make_campaign, make_post


def actual(campaign, account, category='VIEWS'):
    return KPI.objects.get(campaign=campaign, account=account, category=category).actual


class PostHookTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign()
        self.account = make_account()
        dispatch.link(self.campaign.id, self.account.id)

    def test_created_post_updates_both_scopes(self):
        post = make_post(self.campaign, self.account, views=120)
        scopes = dispatch.post_created(post)

        self.assertIn((self.campaign.id, None), scopes)
        self.assertEqual(actual(self.campaign, self.account), 120)
        self.assertEqual(actual(self.campaign, None), 120)

    def test_first_post_links_the_pair(self):
        newcomer = make_account('Account B')
        post = make_post(self.campaign, newcomer, views=30)

        dispatch.post_created(post)

        self.assertTrue(
            CampaignAccount.objects.get(campaign=self.campaign, account=newcomer).is_linked
        )
        self.assertEqual(actual(self.campaign, newcomer), 30)
        self.assertEqual(actual(self.campaign, None), 30)

    def test_moving_a_post_recalculates_old_and_new_scopes(self):
        other = make_account('Account B')
        dispatch.link(self.campaign.id, other.id)
        post = make_post(self.campaign, self.account, views=80)
        dispatch.post_created(post)

        before = post.scope_snapshot()
        post.account = other
        post.save()
        dispatch.post_updated(before, post)

        self.assertEqual(actual(self.campaign, self.account), 0)
        self.assertEqual(actual(self.campaign, other), 80)
        self.assertEqual(actual(self.campaign, None), 80)

    def test_update_that_changes_no_aggregate_input_is_a_no_op(self):
        post = make_post(self.campaign, self.account, views=80)
        before = post.scope_snapshot()
        post.post_title = 'Renamed'
        post.save()

        self.assertEqual(dispatch.post_updated(before, post), [])

    def test_deleted_post(self):
        post = make_post(self.campaign, self.account, views=80)
        dispatch.post_created(post)
        snapshot = post.scope_snapshot()
        post.delete()

        dispatch.post_deleted(snapshot)

        self.assertEqual(actual(self.campaign, self.account), 0)
        self.assertEqual(actual(self.campaign, self.account, 'QTY_POST'), 0)
        self.assertEqual(actual(self.campaign, None), 0)

    def test_engine_failure_does_not_fail_the_hook(self):
        post = make_post(self.campaign, self.account, views=80)
        with mock.patch.object(
            engine, 'recalculate_scope', side_effect=StoreWriteError('upsert_kpi')
        ):
            with self.assertLogs('apps.kpis.dispatch', level='ERROR'):
                dispatch.post_created(post)
        self.assertEqual(actual(self.campaign, self.account), 0)


class LinkHookTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign()
        self.account = make_account()

    def test_unlink_is_refused_while_posts_exist(self):
        dispatch.link(self.campaign.id, self.account.id)
        make_post(self.campaign, self.account, views=1)

        with self.assertRaises(AccountHasPosts):
            dispatch.unlink(self.campaign.id, self.account.id)
        self.assertTrue(CampaignAccount.objects.get(campaign=self.campaign).is_linked)

    def test_membership_update_reports_changes(self):
        other = make_account('Account B')
        dispatch.link(self.campaign.id, self.account.id)

        added, removed = dispatch.membership_updated(self.campaign.id, [other.id])

        self.assertEqual((added, removed), ([other.id], [self.account.id]))
        self.assertEqual(self.campaign.linked_account_ids(), [other.id])

    def test_membership_update_checks_posts_first(self):
        other = make_account('Account B')
        dispatch.link(self.campaign.id, self.account.id)
        make_post(self.campaign, self.account, views=1)

        with self.assertRaises(AccountHasPosts):
            dispatch.membership_updated(self.campaign.id, [other.id])
        self.assertEqual(self.campaign.linked_account_ids(), [self.account.id])

    def test_account_side_update(self):
        second = make_campaign('Campaign D')
        dispatch.link(self.campaign.id, self.account.id)

        added, removed = dispatch.account_campaigns_updated(self.account.id, [second.id])

        self.assertEqual((added, removed), ([second.id], [self.campaign.id]))
        self.assertTrue(KPI.objects.filter(campaign=second, account=self.account).exists())


@override_settings(KPI_RECALC_MODE='async')
class AsyncDispatchTest(TestCase):
    def setUp(self):
        cache.clear()
        self.campaign = make_campaign()
        self.account = make_account()
        link(self.campaign, self.account)

    def test_repeated_triggers_queue_one_run(self):
        with mock.patch.object(recalculate_scope_task, 'delay') as delay:
            dispatch.request_recalculation([(self.campaign.id, self.account.id)])
            dispatch.request_recalculation([(self.campaign.id, self.account.id)])

        delay.assert_called_once_with(self.campaign.id, self.account.id)
        self.assertTrue(is_pending(self.campaign.id, self.account.id))

    def test_failed_enqueue_clears_the_marker(self):
        with mock.patch.object(recalculate_scope_task, 'delay', side_effect=ConnectionError('no broker')):
            self.assertFalse(dispatch.schedule_recalculation(self.campaign.id, self.account.id))
        self.assertFalse(is_pending(self.campaign.id, self.account.id))

    def test_queued_run_recalculates(self):
        make_post(self.campaign, self.account, views=44)

        # Eager Celery runs the task inside delay()
        dispatch.request_recalculation([(self.campaign.id, self.account.id)])

        self.assertEqual(actual(self.campaign, self.account), 44)
        self.assertFalse(is_pending(self.campaign.id, self.account.id))
