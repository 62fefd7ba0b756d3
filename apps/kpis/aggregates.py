"""Category registry: each engine-owned KPI category maps to one aggregate.

An aggregate takes the posts of a scope and an ``AggregationContext`` and
returns an int. Aggregates never raise on well-formed posts and return 0 for
an empty sequence. Posts only need the attributes they read, so model
instances and plain objects work alike; a missing or null counter counts as 0.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Sequence

from .models import KPICategory

Aggregate = Callable[[Sequence, 'AggregationContext'], int]

AGGREGATES: Dict[str, Aggregate] = {}


@dataclass(frozen=True)
class AggregationContext:
    fyp_threshold: Optional[int] = None
    video_content_types: FrozenSet[str] = field(default_factory=lambda: frozenset({'video'}))

    @classmethod
    def for_campaign(cls, campaign, video_content_types: Iterable[str] = ('video',)):
        return cls(
            fyp_threshold=getattr(campaign, 'target_views_for_fyp', None),
            video_content_types=frozenset(t.strip().lower() for t in video_content_types if t.strip()),
        )


def register(category):
    def decorator(func):
        if category in AGGREGATES:
            raise ValueError(f"Aggregate for {category} already registered")
        AGGREGATES[category] = func
        return func
    return decorator


def supported_categories():
    return list(AGGREGATES)


def is_engine_owned(category):
    return category in AGGREGATES


def compute_all(posts, context=None):
    context = context or AggregationContext()
    posts = list(posts)
    return {category: aggregate(posts, context) for category, aggregate in AGGREGATES.items()}


def _counter(post, name):
    return getattr(post, name, 0) or 0


def _sum_of(name):
    def aggregate(posts, context):
        return sum(_counter(p, name) for p in posts)
    aggregate.__name__ = f"sum_{name}"
    return aggregate


register(KPICategory.VIEWS)(_sum_of('total_view'))
register(KPICategory.LIKES)(_sum_of('total_like'))
register(KPICategory.COMMENTS)(_sum_of('total_comment'))
register(KPICategory.SHARES)(_sum_of('total_share'))
register(KPICategory.SAVES)(_sum_of('total_saved'))


@register(KPICategory.QTY_POST)
def post_count(posts, context):
    return len(posts)


@register(KPICategory.VIDEO_COUNT)
def video_count(posts, context):
    return sum(
        1 for p in posts
        if (getattr(p, 'content_type', None) or '').strip().lower() in context.video_content_types
    )


@register(KPICategory.FYP_COUNT)
def fyp_count(posts, context):
    if context.fyp_threshold is None:
        return 0
    return sum(1 for p in posts if _counter(p, 'total_view') >= context.fyp_threshold)


@register(KPICategory.YELLOW_CART)
def yellow_cart_count(posts, context):
    return sum(1 for p in posts if getattr(p, 'yellow_cart', False))
