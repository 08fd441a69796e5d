# legalai/models/app_config.py
from tortoise import fields, models


class AppConfig(models.Model):
    """Singleton row (id=1) with admin-toggled application switches."""
    id = fields.IntField(pk=True)
    subscriptions_enabled = fields.BooleanField(default=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "app_config"
