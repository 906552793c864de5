# config/settings/test.py
from .base import *  # noqa

DEBUG = False

# SQLite keeps the suite self-contained. Point DB_ENGINE at postgresql to run the
# row-locking concurrency tests against a real server.
if os.getenv("DB_ENGINE", "sqlite") == "postgresql":  # noqa: F405
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DB_NAME", "hm"),  # noqa: F405
            "USER": os.getenv("DB_USER", "hm"),  # noqa: F405
            "PASSWORD": os.getenv("DB_PASSWORD", "hm"),  # noqa: F405
            "HOST": os.getenv("DB_HOST", "127.0.0.1"),  # noqa: F405
            "PORT": os.getenv("DB_PORT", "5432"),  # noqa: F405
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test.sqlite3",  # noqa: F405
        }
    }

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MESSAGING_DISPATCHER = "hm_core.messaging.dispatchers.NotConfiguredDispatcher"
MESSAGING_AUTO_SEND_INVOICE = False
MESSAGING_AUTO_SEND_IN_BACKGROUND = False
PUBLIC_BASE_URL = "http://testserver"

LOGGING["loggers"]["hm_core"]["level"] = "WARNING"  # noqa: F405
