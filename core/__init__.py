"""kpiboard project package.

Loads the Celery app with Django so ``@shared_task`` functions in ``tasks``
bind to it.
"""

from .celery import app as celery_app  # noqa: F401

__all__ = ("celery_app",)
