from .base import *  # noqa
from decouple import config

DEBUG = True
SECRET_KEY = config("SECRET_KEY", default="dev-only-not-secure")
ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.mysql",
        "NAME": config("DB_NAME", default="kpiboard_local"),
        "USER": config("DB_USER", default="root"),
        "PASSWORD": config("DB_PASSWORD", default="password"),
        "HOST": config("DB_HOST", default="127.0.0.1"),
        "PORT": config("DB_PORT", default="3306"),
    }
}

REDIS_HOST = config("REDIS_HOST", default="localhost")
REDIS_URL = f"redis://{REDIS_HOST}:6379"

CELERY_BROKER_URL = f"{REDIS_URL}/{config('CELERY_BROKER_DB', cast=int, default=0)}"
CELERY_RESULT_BACKEND = f"{REDIS_URL}/{config('CELERY_RESULT_DB', cast=int, default=1)}"

# Scope locks live in this cache, so the dev server and workers must share it
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"{REDIS_URL}/{config('DJANGO_CACHE_DB', cast=int, default=2)}",
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}

# Run the recalculation inline unless a worker is up
KPI_RECALC_MODE = config("KPI_RECALC_MODE", default="sync")
KPI_SLOW_QUERY_SECONDS = config("KPI_SLOW_QUERY_SECONDS", cast=float, default=0.25)

LOGGING["loggers"]["apps"]["level"] = "DEBUG"
