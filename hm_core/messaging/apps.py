# hm_core/messaging/apps.py
from __future__ import annotations

from django.apps import AppConfig


class MessagingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hm_core.messaging"

    def ready(self):
        from hm_core.messaging import subscribers  # noqa: F401
