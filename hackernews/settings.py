"""
Django settings for the hackernews project.

Anything that differs between a laptop and a deployment can be overridden from the environment;
see the HACKERNEWS_* variables below.
"""

import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def env_flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('HACKERNEWS_SECRET_KEY', 'dev-only-secret-key-do-not-deploy')

DEBUG = env_flag('HACKERNEWS_DEBUG', '1')

ALLOWED_HOSTS = [h for h in os.environ.get('HACKERNEWS_ALLOWED_HOSTS', '').split(',') if h]


# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',
    'graphene_django',
    'django_filters',
    'links',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
]

ROOT_URLCONF = 'hackernews.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'hackernews.wsgi.application'


# Database

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('HACKERNEWS_DB_NAME', os.path.join(BASE_DIR, 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'


# Internationalization

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True


# Static files (GraphiQL)

STATIC_URL = '/static/'


# GraphQL

GRAPHENE = {
    'SCHEMA': 'hackernews.schema.schema',
}


# Logging

LOG_LEVEL = os.environ.get('HACKERNEWS_LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'links': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'hackernews': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
