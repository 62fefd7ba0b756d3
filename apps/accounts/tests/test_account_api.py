from django.core.cache import cache
from rest_framework import status
from rest_framework.test import APITestCase

from apps.authentication.roles import EDITOR, VIEWER
from apps.accounts.models import Account
from apps.campaigns.models import CampaignAccount
from apps.kpis import engine
from apps.kpis.models import KPI
from apps.posts.models import Post
from apps.kpis.tests.helpers import link, make_account, make_campaign, make_post, make_user


class AccountAPITest(APITestCase):
    def setUp(self):
        cache.clear()
        self.client.force_authenticate(make_user('editor', role=EDITOR))
        self.campaign = make_campaign()

    def test_create_with_campaigns(self):
        response = self.client.post('/api/v1/accounts/', {
            'name': 'Creator',
            'tiktok_handle': '@creator',
            'account_type': 'CROSSBRAND',
            'campaign_ids': [self.campaign.id],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['tiktok_handle'], 'creator')
        self.assertEqual(response.data['campaign_count'], 1)
        self.assertTrue(KPI.objects.filter(campaign=self.campaign, account_id=response.data['id']).exists())

    def test_viewer_is_read_only(self):
        self.client.force_authenticate(make_user('viewer', role=VIEWER))
        self.assertEqual(self.client.get('/api/v1/accounts/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/accounts/', {'name': 'X', 'account_type': 'CROSSBRAND'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filters(self):
        make_account('Alpha', account_type='BRAND_SPECIFIC')
        make_account('Beta')

        response = self.client.get('/api/v1/accounts/', {'account_type': 'BRAND_SPECIFIC'})
        self.assertEqual([a['name'] for a in response.data], ['Alpha'])

        response = self.client.get('/api/v1/accounts/', {'search': 'bet'})
        self.assertEqual([a['name'] for a in response.data], ['Beta'])

    def test_update_moves_membership(self):
        account = make_account()
        link(self.campaign, account)
        second = make_campaign('Campaign D')

        response = self.client.patch(
            f'/api/v1/accounts/{account.id}/', {'campaign_ids': [second.id]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/accounts/{account.id}/campaigns/')
        self.assertEqual([c['id'] for c in response.data], [second.id])
        self.assertEqual(
            CampaignAccount.objects.get(campaign=self.campaign, account=account).status,
            CampaignAccount.Status.UNLINKED,
        )

    def test_update_refuses_to_leave_campaign_with_posts(self):
        account = make_account()
        link(self.campaign, account)
        make_post(self.campaign, account, views=1)

        response = self.client.patch(f'/api/v1/accounts/{account.id}/', {'campaign_ids': []}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('campaign_ids', response.data)

    def test_delete_is_refused_while_posts_exist(self):
        kept = make_account('Account A')
        doomed = make_account('Account B')
        link(self.campaign, kept)
        link(self.campaign, doomed)
        make_post(self.campaign, kept, views=100)
        make_post(self.campaign, doomed, views=300)
        engine.recalculate_campaign_tree(self.campaign.id)

        response = self.client.delete(f'/api/v1/accounts/{doomed.id}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('1 post(s)', response.data['error'])
        self.assertTrue(Account.objects.filter(id=doomed.id).exists())
        campaign_views = KPI.objects.get(campaign=self.campaign, account=None, category='VIEWS').actual
        self.assertEqual(campaign_views, sum(Post.objects.values_list('total_view', flat=True)))

    def test_delete_without_posts(self):
        account = make_account()
        link(self.campaign, account)
        engine.initialize_account_kpis(self.campaign.id, account.id)

        response = self.client.delete(f'/api/v1/accounts/{account.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CampaignAccount.objects.exists())
        self.assertFalse(KPI.objects.filter(account_id=account.id).exists())
