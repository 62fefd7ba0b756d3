from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authentication.permissions import HasDashboardRole
from apps.campaigns.models import Campaign, CampaignAccount
from apps.kpis import dispatch
from apps.kpis.exceptions import AccountHasPosts
from .models import Account
from .serializers import AccountSerializer


class AccountViewSet(viewsets.ModelViewSet):
    permission_classes = [HasDashboardRole]
    serializer_class = AccountSerializer
    queryset = Account.objects.all()

    def get_queryset(self):
        queryset = Account.objects.all()
        account_type = self.request.query_params.get('account_type')
        search = self.request.query_params.get('search')
        if account_type:
            queryset = queryset.filter(account_type=account_type)
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset

    def perform_create(self, serializer):
        campaign_ids = serializer.validated_data.get('campaign_ids') or []
        account = serializer.save()
        for campaign_id in campaign_ids:
            dispatch.link(campaign_id, account.id)

    def perform_update(self, serializer):
        campaign_ids = serializer.validated_data.get('campaign_ids')
        if campaign_ids is not None:
            try:
                dispatch.check_account_campaigns(serializer.instance.id, campaign_ids)
            except AccountHasPosts as e:
                raise serializers.ValidationError({'campaign_ids': [str(e)]})
        account = serializer.save()
        if campaign_ids is not None:
            dispatch.account_campaigns_updated(account.id, campaign_ids)

    def destroy(self, request, *args, **kwargs):
        account = self.get_object()
        # Deleting would cascade the posts behind campaign-wide KPIs
        post_count = account.posts.count()
        if post_count:
            return Response(
                {'error': f"Cannot delete account: This account has {post_count} post(s) associated with it. "
                          "Please delete or reassign the posts first."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return super().destroy(request, *args, **kwargs)

    @action(detail=True, methods=['get'])
    def campaigns(self, request, pk=None):
        account = self.get_object()
        campaigns = Campaign.objects.filter(
            memberships__account=account,
            memberships__status=CampaignAccount.Status.LINKED,
        ).order_by('-created_at')
        return Response([
            {'id': c.id, 'name': c.name, 'status': c.status, 'brand_name': c.brand_name}
            for c in campaigns
        ])
