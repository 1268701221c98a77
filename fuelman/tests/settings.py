"""
Django settings for running the Fuelman test suite.
"""

SECRET_KEY = 'fuelman-tests'

DEBUG = False

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'fuelman',
]

MIDDLEWARE = [
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

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

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

ROOT_URLCONF = 'fuelman.tests.urls'

STATIC_URL = '/static/'

USE_TZ = True
TIME_ZONE = 'UTC'
LANGUAGE_CODE = 'pt-br'

FUELMAN = {
    'DRIVER_DIRECTORY': 'fuelman.adapters.noop.NoopDriverDirectory',
    'REQUIRE_OPENING_READING': True,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'loggers': {
        'fuelman': {'level': 'DEBUG'},
    },
}
