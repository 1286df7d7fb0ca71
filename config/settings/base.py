"""
Django settings for the Worksheet Store - Base Configuration
Regional pricing, coupons and checkout for a downloadable worksheet catalog.
"""

import os
from pathlib import Path
from typing import Any

# ===============================================================================
# CORE DJANGO SETTINGS
# ===============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
DJANGO_APPS: list[str] = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS: list[str] = [
    'rest_framework',
]

LOCAL_APPS: list[str] = [
    'apps.products',   # 📚 Worksheet catalog
    'apps.pricing',    # 💱 Regional pricing & launch offer
    'apps.coupons',    # 🎟️ Coupon engine
    'apps.orders',     # 📦 Purchases & download tokens
    'apps.api',        # 🔌 HTTP API
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE: list[str] = [
    'apps.common.middleware.RequestIDMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

# ===============================================================================
# DATABASE CONFIGURATION
# ===============================================================================

DATABASES: dict[str, dict[str, Any]] = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'worksheet_store'),
        'USER': os.environ.get('DB_USER', 'worksheet_store'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'development_password'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
        'CONN_MAX_AGE': 60,
        'OPTIONS': {
            'application_name': 'worksheet_store',
        },
    }
}

# ===============================================================================
# INTERNATIONALIZATION
# ===============================================================================

LANGUAGE_CODE = 'en-in'
TIME_ZONE = 'Asia/Kolkata'
USE_I18N = True
USE_TZ = True

# ===============================================================================
# STATIC FILES
# ===============================================================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# ===============================================================================
# CACHE CONFIGURATION (Redis)
# ===============================================================================

REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'KEY_PREFIX': 'worksheet_store',
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
        }
    }
}

# ===============================================================================
# SESSION & COOKIE SETTINGS
# ===============================================================================

SESSION_ENGINE = 'django.contrib.sessions.backends.cache'
SESSION_CACHE_ALIAS = 'default'
SESSION_COOKIE_HTTPONLY = True
# Note: SESSION_COOKIE_SECURE = True set in prod.py

CSRF_COOKIE_HTTPONLY = True
CSRF_TRUSTED_ORIGINS: list[str] = [
    origin.strip() for origin in os.environ.get('CSRF_TRUSTED_ORIGINS', '').split(',') if origin.strip()
]

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

DATA_UPLOAD_MAX_MEMORY_SIZE = 1048576  # 1MB, JSON bodies only

# ===============================================================================
# DJANGO REST FRAMEWORK
# ===============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': '120/min',
        'pricing_context': '60/min',
        'coupon_apply': '30/min',       # Coupon code guessing protection
        'coupon_list': '30/min',
        'free_order': '10/min',
        'store_admin': '120/min',
    },
    # Decimal amounts are rendered as JSON numbers
    'COERCE_DECIMAL_TO_STRING': False,
}

# ===============================================================================
# RATE LIMITING (django-ratelimit)
# ===============================================================================

RATELIMIT_ENABLE = True
RATELIMIT_USE_CACHE = 'default'

# ===============================================================================
# STORE CONFIGURATION 🛒
# ===============================================================================

# Regional pricing; see apps.pricing.config for the defaults these override
PRICING: dict[str, Any] = {
    'BASE_CURRENCY': 'INR',
    'HOME_COUNTRY': 'IN',
    'FALLBACK_COUNTRY': os.environ.get('PRICING_FALLBACK_COUNTRY', '').strip().upper() or 'IN',
    'FALLBACK_CURRENCY': 'USD',
    'INTERNATIONAL_MULTIPLIER': '4',
}

CHECKOUT: dict[str, int] = {
    'MAX_QUANTITY_PER_ITEM': 20,
    'MAX_ITEMS_PER_ORDER': 25,
}

COUPONS: dict[str, int] = {
    'MAX_VISIBLE_COUPONS': 20,
    'MAX_SCANNED_COUPONS': 120,
}

# Download links issued after fulfillment
DOWNLOAD_TOKEN_TTL_SECONDS = int(os.environ.get('DOWNLOAD_TOKEN_TTL_SECONDS', 15 * 60))
DOWNLOAD_TOKEN_CACHE_ALIAS = 'default'

# ===============================================================================
# STORE ADMIN ACCESS 🔐
# ===============================================================================

# Comma separated; an empty allowlist admits nobody
ADMIN_ALLOWED_EMAILS: list[str] = [
    email.strip().lower() for email in os.environ.get('ADMIN_ALLOWED_EMAILS', '').split(',') if email.strip()
]

IDENTITY_PROVIDER: dict[str, Any] = {
    'LOOKUP_URL': os.environ.get(
        'IDENTITY_PROVIDER_LOOKUP_URL', 'https://identitytoolkit.googleapis.com/v1/accounts:lookup'
    ),
    'API_KEY': os.environ.get('IDENTITY_PROVIDER_API_KEY', ''),
    'TIMEOUT': int(os.environ.get('IDENTITY_PROVIDER_TIMEOUT', 5)),
}

# ===============================================================================
# LOGGING (overridden per environment)
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} [{request_id}] {message}',
            'style': '{',
        },
    },
    'filters': {
        'add_request_id': {
            '()': 'apps.common.logging.RequestIDFilter',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
            'filters': ['add_request_id'],
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# ===============================================================================
# DEFAULT AUTO FIELD
# ===============================================================================

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ===============================================================================
# SECURITY SETTINGS (Base - override in prod.py)
# ===============================================================================

ALLOWED_HOSTS: list[str] = []

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY')
if not SECRET_KEY:
    # Development fallback - never use this in production
    import warnings
    warnings.warn(
        "🚨 SECURITY WARNING: Using default SECRET_KEY. "
        "Set DJANGO_SECRET_KEY environment variable for production!",
        UserWarning,
        stacklevel=2
    )
    SECRET_KEY = 'django-insecure-dev-key-only-change-in-production-or-tests'  # noqa: S105


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith('django-insecure-'):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key: python -c 'from django.core.management.utils import get_random_secret_key; print(get_random_secret_key())'"
        )
