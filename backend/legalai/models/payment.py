# legalai/models/payment.py
import uuid
from tortoise import fields, models


class Payment(models.Model):
    """
    Append-only payment record produced by subscription transitions
    (upgrade, renew). Covers the period [period_start, period_end].
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="payments", on_delete=fields.CASCADE)
    amount = fields.DecimalField(max_digits=10, decimal_places=2)
    period_start = fields.DatetimeField()
    period_end = fields.DatetimeField()
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "payments"
