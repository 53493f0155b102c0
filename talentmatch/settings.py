"""
Django Settings for the TalentMatch Project

Values are read from the environment through django-environ. Every setting
the matching engine consumes has a default so the project boots with no
environment at all (SQLite, local-memory cache, no LLM key).

Matching-specific settings:
    MATCHING_MIN_SCORE        Minimum score a match must reach to be saved/listed
    MATCHING_BULK_JOB_STORE   Dotted path of the bulk job status store
    MATCHING_BULK_JOB_TTL     Seconds a bulk job status record is kept
    LLM_API_KEY / LLM_API_BASE_URL / LLM_MODEL / LLM_TIMEOUT / LLM_MAX_RETRIES
                              OpenAI-compatible chat completions endpoint
"""

from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1']),
)
environ.Env.read_env(BASE_DIR / '.env', overwrite=False)

# =============================================================================
# CORE
# =============================================================================

SECRET_KEY = env('SECRET_KEY', default='django-insecure-talentmatch-dev-key')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env('ALLOWED_HOSTS')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'django_filters',

    'recruitment',
    'matching',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'talentmatch.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'talentmatch.wsgi.application'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# =============================================================================
# DATABASE
# =============================================================================

DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

# =============================================================================
# CACHE
# =============================================================================

# Bulk job status records live in the cache; use Redis in any deployment
# with more than one web or worker process.
REDIS_URL = env('REDIS_URL', default='')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        },
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'talentmatch-default',
        },
    }

# =============================================================================
# INTERNATIONALIZATION
# =============================================================================

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# =============================================================================
# REST FRAMEWORK
# =============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.BasicAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
    ],
    'EXCEPTION_HANDLER': 'matching.exceptions.matching_exception_handler',
}

# =============================================================================
# CELERY
# =============================================================================

CELERY_BROKER_URL = env('CELERY_BROKER_URL', default=REDIS_URL or 'memory://')
CELERY_RESULT_BACKEND = env('CELERY_RESULT_BACKEND', default=REDIS_URL or 'cache+memory://')
CELERY_TASK_ALWAYS_EAGER = env.bool('CELERY_TASK_ALWAYS_EAGER', default=False)
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TIMEZONE = TIME_ZONE

# =============================================================================
# LLM SERVICE (OpenAI-compatible chat completions)
# =============================================================================

LLM_API_KEY = env('LLM_API_KEY', default='')
LLM_API_BASE_URL = env(
    'LLM_API_BASE_URL',
    default='https://dashscope-intl.aliyuncs.com/compatible-mode/v1'
)
LLM_MODEL = env('LLM_MODEL', default='qwen-turbo')
LLM_TIMEOUT = env.float('LLM_TIMEOUT', default=60.0)
LLM_MAX_RETRIES = env.int('LLM_MAX_RETRIES', default=3)

# =============================================================================
# MATCHING ENGINE
# =============================================================================

MATCHING_MIN_SCORE = env.int('MATCHING_MIN_SCORE', default=30)
MATCHING_BULK_JOB_STORE = env(
    'MATCHING_BULK_JOB_STORE',
    default='matching.bulk_status.CacheBulkJobStore'
)
MATCHING_BULK_JOB_TTL = env.int('MATCHING_BULK_JOB_TTL', default=7 * 24 * 3600)

# =============================================================================
# LOGGING
# =============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': env('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'matching': {
            'handlers': ['console'],
            'level': env('MATCHING_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'recruitment': {
            'handlers': ['console'],
            'level': env('MATCHING_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'celery': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
