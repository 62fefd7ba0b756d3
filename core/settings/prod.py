from .base import *  # noqa
from decouple import config, Csv

DEBUG = config("DEBUG", cast=bool, default=False)
ALLOWED_HOSTS = config("DJANGO_ALLOWED_HOSTS", cast=Csv(), default="*.run.app")

# CORS - Restrictivo
CORS_ALLOWED_ORIGINS = config(
    "CORS_ALLOWED_ORIGINS",
    cast=Csv(),
    default="https://dashboard.kpiboard.app"
)
CORS_ALLOW_CREDENTIALS = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.mysql",
        "NAME": config("DB_NAME"),
        "USER": config("DB_USER"),
        "PASSWORD": config("DB_PASSWORD"),
        "HOST": config("DB_HOST"),
        "PORT": config("DB_PORT", default="3306"),
        "OPTIONS": {
            "charset": "utf8mb4",
            "init_command": "SET sql_mode='STRICT_TRANS_TABLES'",
        },
        "CONN_MAX_AGE": 600,  # Connection pooling
    }
}

REDIS_HOST = config("REDIS_HOST")
BROKER_DB = config("CELERY_BROKER_DB", cast=int, default=0)
RESULT_DB = config("CELERY_RESULT_DB", cast=int, default=1)
CACHE_DB = config("DJANGO_CACHE_DB", cast=int, default=2)

CELERY_BROKER_URL = f"redis://{REDIS_HOST}:6379/{BROKER_DB}"
CELERY_RESULT_BACKEND = f"redis://{REDIS_HOST}:6379/{RESULT_DB}"
CELERY_TASK_TIME_LIMIT = config("CELERY_TASK_TIME_LIMIT", cast=int, default=1800)
CELERY_TASK_SOFT_TIME_LIMIT = config("CELERY_TASK_SOFT_TIME_LIMIT", cast=int, default=1500)

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"redis://{REDIS_HOST}:6379/{CACHE_DB}",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "CONNECTION_POOL_KWARGS": {"max_connections": 50}
        },
        "TIMEOUT": config("DJANGO_CACHE_TIMEOUT", cast=int, default=3600),
    }
}

KPI_RECALC_MODE = config("KPI_RECALC_MODE", default="async")

SECRET_KEY = config("SECRET_KEY")
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
CSRF_TRUSTED_ORIGINS = config("CSRF_TRUSTED_ORIGINS", cast=Csv(), default="https://*.run.app")

LOGGING["loggers"]["django"]["level"] = "WARNING"
