"""
Django Test Settings for the TalentMatch Project

Overrides the main settings for fast, isolated test runs.

Usage:
    pytest --ds=talentmatch.settings_test
"""

from .settings import *  # noqa: F401, F403

# =============================================================================
# TEST ENVIRONMENT CONFIGURATION
# =============================================================================

DEBUG = False
TESTING = True

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# =============================================================================
# CACHING CONFIGURATION
# =============================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'unique-snowflake',
    },
}

# =============================================================================
# CELERY CONFIGURATION
# =============================================================================

# Execute tasks synchronously during tests
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

# =============================================================================
# THIRD-PARTY SERVICE MOCKING
# =============================================================================

LLM_API_KEY = 'sk-test-mock-key-for-testing'
LLM_MAX_RETRIES = 1

# =============================================================================
# MATCHING ENGINE
# =============================================================================

MATCHING_MIN_SCORE = 30
MATCHING_BULK_JOB_STORE = 'matching.bulk_status.CacheBulkJobStore'

# =============================================================================
# REST FRAMEWORK TEST SETTINGS
# =============================================================================

REST_FRAMEWORK['TEST_REQUEST_DEFAULT_FORMAT'] = 'json'

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# Minimal logging during tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
