from types import SimpleNamespace

from django.test import SimpleTestCase

from apps.kpis import aggregates
from apps.kpis.aggregates import AggregationContext
from apps.kpis.models import KPICategory


def post(**kwargs):
    fields = {
        'total_view': 0, 'total_like': 0, 'total_comment': 0,
        'total_share': 0, 'total_saved': 0, 'content_type': '', 'yellow_cart': False,
    }
    fields.update(kwargs)
    return SimpleNamespace(**fields)


class AggregateRegistryTest(SimpleTestCase):

    def test_every_category_but_gmv_is_engine_owned(self):
        owned = set(aggregates.supported_categories())
        self.assertEqual(owned, set(KPICategory.values) - {KPICategory.GMV_IDR})
        self.assertFalse(aggregates.is_engine_owned(KPICategory.GMV_IDR))
        self.assertTrue(aggregates.is_engine_owned('VIEWS'))

    def test_registering_a_category_twice_fails(self):
        with self.assertRaises(ValueError):
            aggregates.register(KPICategory.VIEWS)(lambda posts, context: 0)

    def test_empty_post_set_gives_zero_everywhere(self):
        totals = aggregates.compute_all([], AggregationContext(fyp_threshold=10))
        self.assertEqual(set(totals.values()), {0})

    def test_sums_and_count(self):
        posts = [
            post(total_view=100, total_like=10, total_comment=1, total_share=2, total_saved=3),
            post(total_view=200, total_like=20, total_comment=2, total_share=4, total_saved=6),
            post(total_view=50),
        ]
        totals = aggregates.compute_all(posts)
        self.assertEqual(totals[KPICategory.VIEWS], 350)
        self.assertEqual(totals[KPICategory.LIKES], 30)
        self.assertEqual(totals[KPICategory.COMMENTS], 3)
        self.assertEqual(totals[KPICategory.SHARES], 6)
        self.assertEqual(totals[KPICategory.SAVES], 9)
        self.assertEqual(totals[KPICategory.QTY_POST], 3)

    def test_missing_counters_count_as_zero(self):
        posts = [post(total_view=None), SimpleNamespace(), post(total_view=7)]
        totals = aggregates.compute_all(posts)
        self.assertEqual(totals[KPICategory.VIEWS], 7)
        self.assertEqual(totals[KPICategory.QTY_POST], 3)

    def test_video_count_ignores_case_and_other_types(self):
        posts = [post(content_type='Video'), post(content_type=' video '), post(content_type='photo'), post(content_type=None)]
        self.assertEqual(aggregates.video_count(posts, AggregationContext()), 2)

    def test_video_types_come_from_context(self):
        context = AggregationContext(video_content_types=frozenset({'video', 'live'}))
        posts = [post(content_type='LIVE'), post(content_type='video'), post(content_type='photo')]
        self.assertEqual(aggregates.video_count(posts, context), 2)

    def test_fyp_count_uses_campaign_threshold(self):
        posts = [post(total_view=999), post(total_view=1000), post(total_view=5000)]
        campaign = SimpleNamespace(target_views_for_fyp=1000)
        context = AggregationContext.for_campaign(campaign)
        self.assertEqual(aggregates.fyp_count(posts, context), 2)

    def test_fyp_count_without_threshold_is_zero(self):
        posts = [post(total_view=10 ** 6)]
        self.assertEqual(aggregates.fyp_count(posts, AggregationContext()), 0)

    def test_yellow_cart_count(self):
        posts = [post(yellow_cart=True), post(yellow_cart=False), post(yellow_cart=True)]
        self.assertEqual(aggregates.yellow_cart_count(posts, AggregationContext()), 2)

    def test_additive_over_disjoint_partitions(self):
        a_posts = [post(total_view=100, content_type='video'), post(total_view=200)]
        b_posts = [post(total_view=300, yellow_cart=True)]
        context = AggregationContext(fyp_threshold=150)
        a = aggregates.compute_all(a_posts, context)
        b = aggregates.compute_all(b_posts, context)
        both = aggregates.compute_all(a_posts + b_posts, context)
        for category, value in both.items():
            self.assertEqual(value, a[category] + b[category])
