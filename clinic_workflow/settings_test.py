"""
测试用配置：内存 SQLite，不依赖 PostgreSQL 容器

pyproject.toml 里 DJANGO_SETTINGS_MODULE 指向这里
"""
from .settings import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING['loggers']['clinic']['level'] = 'WARNING'  # noqa: F405
