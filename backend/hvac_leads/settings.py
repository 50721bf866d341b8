"""
Django settings for the HVAC lead desk.

Uses SQLite by default (single-writer, WAL journal) and django-rest-framework
for the API layer consumed by the operator dashboard.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-secret-key-change-in-production')

DEBUG = os.environ.get('DEBUG', 'True').lower() in ('true', '1', 'yes')

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

# Application definition
INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'rest_framework',
    'corsheaders',
    'django_q',
    'leads',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
]

# Don't redirect to add trailing slashes; webhooks and the dashboard send exact URLs
APPEND_SLASH = False

ROOT_URLCONF = 'hvac_leads.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
    },
]

WSGI_APPLICATION = 'hvac_leads.wsgi.application'

# Behind Render (or any proxy) the webhook signature must be computed on the public URL
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True

# Database: SQLite file by default, PostgreSQL when DB_ENGINE says so
DB_ENGINE = os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3')

if DB_ENGINE == 'django.db.backends.sqlite3':
    _db_path = Path(os.environ.get('DATABASE_PATH', 'data/calls.sqlite3'))
    if not _db_path.is_absolute():
        _db_path = BASE_DIR / _db_path
    _db_path.parent.mkdir(parents=True, exist_ok=True)
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': _db_path,
            'OPTIONS': {
                'timeout': 3,
                'init_command': 'PRAGMA journal_mode=WAL; PRAGMA synchronous=NORMAL;',
            },
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': os.environ.get('DB_NAME', 'hvac_leads'),
            'USER': os.environ.get('DB_USER', 'postgres'),
            'PASSWORD': os.environ.get('DB_PASSWORD', 'postgres'),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '5432'),
        }
    }

# CORS
CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = [
    'http://localhost:4173',
    'http://127.0.0.1:4173',
    'http://localhost:5173',
]
CORS_ALLOW_HEADERS = [
    'accept',
    'content-type',
    'x-demo-key',
]

# DRF
REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_PAGINATION_CLASS': None,
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'leads.permissions.HasDemoKey',
    ],
    'EXCEPTION_HANDLER': 'leads.exceptions.api_exception_handler',
}

# Shared secret for the dashboard API. Empty = API closed.
DEMO_KEY = os.environ.get('DEMO_KEY', '')

# Telephony webhooks (Twilio-compatible)
TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN', '')
TWILIO_FORWARD_TO = os.environ.get('TWILIO_FORWARD_TO', '')
TWILIO_VALIDATE_SIGNATURE = os.environ.get('TWILIO_VALIDATE_SIGNATURE', '1') != '0'

# Lead SLA policy: how long a lead may sit unhandled before it is overdue
LEAD_SLA_MINUTES = int(os.environ.get('LEAD_SLA_MINUTES', '15'))
LEAD_SLA_POLICY = os.environ.get('LEAD_SLA_POLICY', 'leads.services.sla.AgeThresholdPolicy')

# Dashboard config served at /api/config
DASHBOARD_OWNER_OPTIONS = [
    name.strip()
    for name in os.environ.get('DASHBOARD_OWNER_OPTIONS', 'Cody,Sam,Alex').split(',')
    if name.strip()
]
DASHBOARD_REFRESH_SECONDS = int(os.environ.get('DASHBOARD_REFRESH_SECONDS', '10'))

# django-q2: periodic SLA sweep using the ORM broker (no Redis needed)
Q_CLUSTER = {
    'name': 'hvac-leads',
    'workers': 1,
    'timeout': 60,
    'retry': 120,
    'orm': 'default',
    'catch_up': False,
}

# All datetimes are timezone-aware UTC
USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
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
        'level': os.environ.get('LOG_LEVEL', 'INFO'),
    },
}
