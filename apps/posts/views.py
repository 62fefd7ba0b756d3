from rest_framework import viewsets

from apps.authentication.permissions import HasDashboardRole
from apps.kpis import dispatch
from .models import Post
from .serializers import PostSerializer


class PostViewSet(viewsets.ModelViewSet):
    """Post CRUD; every mutation hands the touched KPI scopes to the dispatcher."""

    permission_classes = [HasDashboardRole]
    serializer_class = PostSerializer
    queryset = Post.objects.all()

    def get_queryset(self):
        queryset = Post.objects.select_related('campaign', 'account')
        params = self.request.query_params
        if params.get('campaign'):
            queryset = queryset.filter(campaign_id=params['campaign'])
        if params.get('account'):
            queryset = queryset.filter(account_id=params['account'])
        if params.get('status'):
            queryset = queryset.filter(status__icontains=params['status'])
        if params.get('category'):
            queryset = queryset.filter(content_category__icontains=params['category'])
        if params.get('date_from'):
            queryset = queryset.filter(post_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(post_date__lte=params['date_to'])
        return queryset.order_by('-post_date')

    def perform_create(self, serializer):
        post = serializer.save()
        dispatch.post_created(post)

    def perform_update(self, serializer):
        before = serializer.instance.scope_snapshot()
        post = serializer.save()
        dispatch.post_updated(before, post)

    def perform_destroy(self, instance):
        snapshot = instance.scope_snapshot()
        instance.delete()
        dispatch.post_deleted(snapshot)
