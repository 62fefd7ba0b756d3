import logging

from rest_framework import viewsets

from apps.authentication.permissions import HasDashboardRole
from . import dispatch
from .aggregates import is_engine_owned
from .models import KPI
from .serializers import KPISerializer

logger = logging.getLogger(__name__)


class KPIViewSet(viewsets.ModelViewSet):
    permission_classes = [HasDashboardRole]
    serializer_class = KPISerializer
    queryset = KPI.objects.all()

    def get_queryset(self):
        queryset = KPI.objects.select_related('campaign', 'account').order_by(
            'campaign_id', 'account_id', 'category'
        )
        params = self.request.query_params
        if params.get('campaign'):
            queryset = queryset.filter(campaign_id=params['campaign'])
        if params.get('account'):
            queryset = queryset.filter(account_id=params['account'])
        if params.get('scope') == 'campaign':
            queryset = queryset.filter(account__isnull=True)
        if params.get('category'):
            queryset = queryset.filter(category=params['category'])
        return queryset

    def perform_create(self, serializer):
        kpi = serializer.save()
        if is_engine_owned(kpi.category):
            # A hand-made row of an engine category starts from the real value
            dispatch.request_recalculation([(kpi.campaign_id, kpi.account_id)])
