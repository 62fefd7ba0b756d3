import logging

from django.db import transaction
from django.db.models import Count, Sum
from django.db.models.functions import Coalesce
from django.shortcuts import get_object_or_404
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.accounts.models import Account
from apps.authentication.permissions import HasDashboardRole
from apps.authentication.roles import ADMIN, CAMPAIGN_MANAGER
from apps.kpis import dispatch, engine
from apps.kpis.exceptions import AccountHasPosts, KPIError
from apps.kpis.models import KPI
from apps.kpis.serializers import KPISerializer
from apps.kpis.store import KPIStore
from apps.posts.models import Post, engagement_rate
from .models import Campaign, CampaignAccount
from .serializers import AccountLinkSerializer, CampaignSerializer

logger = logging.getLogger(__name__)


def _kpi_failure(e):
    return Response(
        {'error': str(e) or 'Failed to recalculate KPIs'},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


class CampaignViewSet(viewsets.ModelViewSet):
    permission_classes = [HasDashboardRole]
    write_roles = (ADMIN, CAMPAIGN_MANAGER)
    serializer_class = CampaignSerializer
    queryset = Campaign.objects.all()

    def get_queryset(self):
        queryset = Campaign.objects.all()
        params = self.request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('date_from'):
            queryset = queryset.filter(start_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(end_date__lte=params['date_to'])
        return queryset

    def perform_create(self, serializer):
        account_ids = serializer.validated_data.get('account_ids') or []
        campaign = serializer.save()
        for account_id in account_ids:
            dispatch.link(campaign.id, account_id)

    def perform_update(self, serializer):
        account_ids = serializer.validated_data.get('account_ids')
        if account_ids is not None:
            try:
                dispatch.check_campaign_accounts(serializer.instance.id, account_ids)
            except AccountHasPosts as e:
                raise serializers.ValidationError({'account_ids': [str(e)]})
        before = {field: getattr(serializer.instance, field) for field in Campaign.AGGREGATE_FIELDS}
        campaign = serializer.save()
        if account_ids is not None:
            dispatch.membership_updated(campaign.id, account_ids)
        if any(getattr(campaign, field) != value for field, value in before.items()):
            dispatch.campaign_inputs_changed(campaign.id)

    def perform_destroy(self, instance):
        # Posts, KPI rows and links go with the campaign
        with transaction.atomic():
            Post.objects.filter(campaign=instance).delete()
            KPI.objects.filter(campaign=instance).delete()
            CampaignAccount.objects.filter(campaign=instance).delete()
            instance.delete()
        logger.info(f"Deleted campaign {instance.name}")

    @action(detail=True, methods=['get'])
    def kpis(self, request, pk=None):
        campaign = self.get_object()
        try:
            kpis = KPIStore().list_kpis(campaign.id)
        except KPIError as e:
            return _kpi_failure(e)
        return Response(KPISerializer(kpis, many=True).data)

    @action(detail=True, methods=['get'], url_path='dashboard/engagement')
    def engagement_dashboard(self, request, pk=None):
        campaign = self.get_object()
        totals = Post.objects.filter(campaign=campaign).aggregate(
            views=Coalesce(Sum('total_view'), 0),
            likes=Coalesce(Sum('total_like'), 0),
            comments=Coalesce(Sum('total_comment'), 0),
            shares=Coalesce(Sum('total_share'), 0),
            saves=Coalesce(Sum('total_saved'), 0),
        )
        interactions = totals['likes'] + totals['comments'] + totals['shares'] + totals['saves']
        totals['engagement_rate'] = engagement_rate(totals['views'], interactions)
        return Response(totals)

    @action(detail=True, methods=['get'], url_path='dashboard/kpi')
    def kpi_dashboard(self, request, pk=None):
        """KPI rows of the campaign, optionally narrowed.

        ``crossbrand_only=true`` keeps rows of accounts linked to two or more
        campaigns; campaign-wide rows drop out.
        """
        campaign = self.get_object()
        kpis = KPI.objects.filter(campaign=campaign)
        params = request.query_params
        if params.get('kpi_category'):
            kpis = kpis.filter(category=params['kpi_category'])
        if params.get('account_id'):
            kpis = kpis.filter(account_id=params['account_id'])
        if params.get('crossbrand_only') == 'true':
            crossbrand = (
                CampaignAccount.objects.filter(status=CampaignAccount.Status.LINKED)
                .values('account_id')
                .annotate(campaigns=Count('campaign_id'))
                .filter(campaigns__gte=2)
                .values('account_id')
            )
            kpis = kpis.filter(account_id__in=crossbrand)
        return Response([
            {
                'id': kpi.id,
                'campaign_id': kpi.campaign_id,
                'account_id': kpi.account_id,
                'category': kpi.category,
                'target': kpi.target,
                'actual': kpi.actual,
                'remaining': kpi.remaining,
            }
            for kpi in kpis.order_by('account_id', 'category')
        ])

    @action(detail=True, methods=['post'], url_path='accounts')
    def link_account(self, request, pk=None):
        campaign = self.get_object()
        serializer = AccountLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account_id = serializer.validated_data['account_id']
        linked = dispatch.link(campaign.id, account_id)
        return Response(
            {'campaign_id': campaign.id, 'account_id': account_id, 'linked': linked},
            status=status.HTTP_201_CREATED if linked else status.HTTP_200_OK,
        )

    @link_account.mapping.get
    def list_accounts(self, request, pk=None):
        campaign = self.get_object()
        accounts = Account.objects.filter(
            memberships__campaign=campaign,
            memberships__status=CampaignAccount.Status.LINKED,
        )
        return Response([
            {'id': a.id, 'name': a.name, 'tiktok_handle': a.tiktok_handle, 'account_type': a.account_type}
            for a in accounts
        ])

    @action(detail=True, methods=['delete'], url_path=r'accounts/(?P<account_id>\d+)')
    def unlink_account(self, request, pk=None, account_id=None):
        campaign = self.get_object()
        account_id = int(account_id)
        get_object_or_404(CampaignAccount, campaign=campaign, account_id=account_id)
        try:
            unlinked = dispatch.unlink(campaign.id, account_id)
        except AccountHasPosts as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'ok': True, 'unlinked': unlinked})

    @action(detail=True, methods=['post'], url_path='recalculate-kpis')
    def recalculate_kpis(self, request, pk=None):
        campaign = self.get_object()
        try:
            account_ids = engine.recalculate_campaign_tree(campaign.id)
        except KPIError as e:
            logger.error(f"Recalculation of campaign {campaign.id} failed: {e}")
            return _kpi_failure(e)
        return Response({'ok': True, 'campaign_id': campaign.id, 'accounts': account_ids})

    @action(
        detail=True,
        methods=['post'],
        url_path=r'accounts/(?P<account_id>\d+)/recalculate-kpis',
    )
    def recalculate_account_kpis(self, request, pk=None, account_id=None):
        campaign = self.get_object()
        account = get_object_or_404(Account, pk=account_id)
        try:
            kpis = engine.recalculate_scope(campaign.id, account.id)
            engine.recalculate_scope(campaign.id, None)
        except KPIError as e:
            logger.error(f"Recalculation of account {account.id} in campaign {campaign.id} failed: {e}")
            return _kpi_failure(e)
        return Response({
            'ok': True,
            'kpis': KPISerializer(list(kpis.values()), many=True).data,
        })
