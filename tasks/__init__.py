from core.celery import app as celery_app

__all__ = ('celery_app',)

# Register tasks explicitly
from .kpis import recalculate_scope_task, recalculate_campaign_task, recalculate_all_kpis

# Register periodic tasks
from celery.schedules import crontab
from django.conf import settings

if hasattr(settings, 'CELERY_BEAT_SCHEDULE'):
    celery_app.conf.beat_schedule = {
        'recalculate-all-kpis': {
            'task': 'tasks.kpis.recalculate_all_kpis',
            'schedule': crontab(hour=1, minute=0),  # Daily at 1 AM
        },
    }
