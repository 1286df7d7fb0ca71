"""
Test settings for the Worksheet Store
Fast, isolated testing environment.
"""

import os

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# Explicit test flag so views can soften behaviors (e.g., rate limits)
TESTING = True

# ===============================================================================
# TEST DATABASE (In-memory for speed, PostgreSQL with TEST_USE_POSTGRES=true)
# ===============================================================================

# PostgreSQL runs exercise real row locks in the coupon concurrency tests
if os.environ.get('TEST_USE_POSTGRES') != 'true':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
            'OPTIONS': {
                'timeout': 20,
            }
        }
    }

# ===============================================================================
# TEST CACHE (Local memory)
# ===============================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-cache',
    }
}

SESSION_ENGINE = 'django.contrib.sessions.backends.db'

# ===============================================================================
# DISABLE MIGRATIONS FOR FASTER TESTS
# ===============================================================================

class DisableMigrations:
    def __contains__(self, item: str) -> bool:
        return True

    def __getitem__(self, item: str) -> None:
        return None


MIGRATION_MODULES = DisableMigrations()

# ===============================================================================
# RATE LIMITING (Off; throttle behaviour is tested explicitly)
# ===============================================================================

RATELIMIT_ENABLE = False

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_CLASSES': [],
}

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
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

# ===============================================================================
# SECURITY (Relaxed for tests)
# ===============================================================================

SECRET_KEY = 'django-test-key-not-secure'
ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']

# ===============================================================================
# STORE CONFIGURATION (Deterministic for tests)
# ===============================================================================

PRICING = {
    **PRICING,  # noqa: F405
    'FALLBACK_COUNTRY': 'IN',
}

ADMIN_ALLOWED_EMAILS = ['admin@example.com']

IDENTITY_PROVIDER = {
    'LOOKUP_URL': 'https://identity.test/v1/accounts:lookup',
    'API_KEY': 'test-api-key',
    'TIMEOUT': 1,
}
