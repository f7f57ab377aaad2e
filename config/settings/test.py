"""Test settings.

In-memory SQLite, eager Celery tasks and WhatsApp delivery disabled.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CACHES = {
    'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'},
}

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

WHATSAPP_ENABLED = False
WHATSAPP_PHONE_NUMBER_ID = ''
WHATSAPP_ACCESS_TOKEN = ''
WHATSAPP_VERIFY_TOKEN = 'test-verify-token'
PAYMENT_WEBHOOK_SECRET = ''
FRONTEND_URL = 'https://stay.example.com'

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
