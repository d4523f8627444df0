"""
Django settings for airwatch project.

Values come from the environment (a local .env file is loaded when present).

For more information on this file, see
https://docs.djangoproject.com/en/5.2/topics/settings/
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-airwatch-dev-key')

DEBUG = env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]

APP_VERSION = '2.0.0'
APP_MODE = 'direct_api_integration'
ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')


# Application definition

INSTALLED_APPS = [
    'daphne',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'channels',
    'core',
    'air',
    'policy',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'airwatch.urls'

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

WSGI_APPLICATION = 'airwatch.wsgi.application'
ASGI_APPLICATION = 'airwatch.asgi.application'


# Database

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# Redis is optional: cache, channel layer and Celery broker fall back to
# in-process backends when REDIS_URL is not set.

REDIS_URL = os.getenv('REDIS_URL', '')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
            'KEY_PREFIX': 'airwatch',
        }
    }
    CHANNEL_LAYERS = {
        'default': {
            'BACKEND': 'channels_redis.core.RedisChannelLayer',
            'CONFIG': {'hosts': [REDIS_URL]},
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'airwatch-cache',
        }
    }
    CHANNEL_LAYERS = {
        'default': {
            'BACKEND': 'channels.layers.InMemoryChannelLayer',
        }
    }


# Django REST Framework

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': os.getenv('API_THROTTLE_RATE', '400/hour'),
        'ai': os.getenv('AI_THROTTLE_RATE', '40/hour'),
    },
    'EXCEPTION_HANDLER': 'core.exceptions.custom_exception_handler',
    'UNAUTHENTICATED_USER': None,
    # ?format= selects the measurement layout, not a renderer
    'URL_FORMAT_OVERRIDE': None,
}

# Minimum seconds between forced refreshes requested over the WebSocket
WS_REFRESH_COOLDOWN = int(os.getenv('WS_REFRESH_COOLDOWN', '30'))


# CORS: local dashboard dev servers plus the deployed frontend

FRONTEND_URL = os.getenv('FRONTEND_URL', '')

CORS_ALLOWED_ORIGINS = [
    'http://localhost:3000',
    'http://localhost:5173',
]
if FRONTEND_URL:
    CORS_ALLOWED_ORIGINS.append(FRONTEND_URL.rstrip('/'))
CORS_ALLOWED_ORIGINS += [o.strip().rstrip('/') for o in os.getenv('CORS_EXTRA_ORIGINS', '').split(',') if o.strip()]
CORS_ALLOW_CREDENTIALS = True


# Celery

CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL or 'memory://')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', REDIS_URL or 'cache+memory://')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', False)

AUTO_REFRESH_INTERVAL = int(os.getenv('AUTO_REFRESH_INTERVAL', 15 * 60))

CELERY_BEAT_SCHEDULE = {
    'auto-refresh-dashboard': {
        'task': 'air.tasks.auto_refresh_dashboard',
        'schedule': float(AUTO_REFRESH_INTERVAL),
    },
}


# Air quality providers

DEFAULT_CITY = os.getenv('DEFAULT_CITY', 'Nairobi')
DEFAULT_COUNTRY = os.getenv('DEFAULT_COUNTRY', 'Kenya')

WEATHERAPI_KEY = os.getenv('WEATHERAPI_KEY', '')
OPENAQ_API_KEY = os.getenv('OPENAQ_API_KEY', '')
IQAIR_API_KEY = os.getenv('IQAIR_API_KEY', '')
WAQI_TOKEN = os.getenv('WAQI_TOKEN', '')

PROVIDER_TIMEOUT = int(os.getenv('PROVIDER_TIMEOUT', 10))
WEATHERAPI_POINT_DELAY = float(os.getenv('WEATHERAPI_POINT_DELAY', 0.2))
AIR_FETCH_RETRIES = int(os.getenv('AIR_FETCH_RETRIES', 2))
AIR_FETCH_RETRY_DELAY = float(os.getenv('AIR_FETCH_RETRY_DELAY', 1.0))
AIR_CACHE_TTL = int(os.getenv('AIR_CACHE_TTL', 15 * 60))

DASHBOARD_GROUP = os.getenv('DASHBOARD_GROUP', 'nairobi_dashboard')


# AI analysis (OpenRouter)

OPENROUTER_API_KEY = os.getenv('OPENROUTER_API_KEY', '')
OPENROUTER_BASE_URL = os.getenv('OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')
PREFERRED_AI_MODEL = os.getenv('PREFERRED_AI_MODEL', 'meta-llama/llama-3.3-70b-instruct')
AI_ENABLED = env_bool('AI_ENABLED', False)
AI_ANALYSIS_DEPTH = os.getenv('AI_ANALYSIS_DEPTH', 'standard')
AI_MAX_TOKENS = int(os.getenv('AI_MAX_TOKENS', 2000))
AI_TEMPERATURE = float(os.getenv('AI_TEMPERATURE', 0.3))

POLICY_BASELINE_PM25 = float(os.getenv('POLICY_BASELINE_PM25', 45.2))


# Logging

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
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
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'air': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'policy': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'core': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
