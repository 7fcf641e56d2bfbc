# sales/models/sale_payment.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from sales.models.sale import Sale


class SalePayment(models.Model):
    """
    A customer settlement against a sale invoice.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateTimeField(default=timezone.now)
    amount = models.PositiveBigIntegerField()
    payment_method = models.CharField(
        max_length=32,
        default="cash",
        help_text="cash/bank/pos/transfer",
    )
    reference_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date"]
        indexes = [
            models.Index(fields=["sale", "payment_date"]),
            models.Index(fields=["payment_date"]),
        ]

    def clean(self):
        if not self.amount or self.amount <= 0:
            raise ValidationError({"amount": "amount must be > 0"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"SalePayment {self.amount} on {self.sale_id}"
