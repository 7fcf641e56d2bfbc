# sales/models/sale.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from branches.models import Branch
from sales.models.customer import Customer


class Sale(models.Model):
    """
    Represents a sale invoice that may be settled later (credit sale).

    GUARANTEES:
    - outstanding_amount == total_amount - paid_amount (recomputed on save)
    - Amounts are integer minor units
    - Completed sales with an outstanding amount are receivables
    """

    STATUS_DRAFT = "Draft"
    STATUS_COMPLETED = "Completed"
    STATUS_CANCELLED = "Cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale_number = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated invoice / receipt number",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="sales",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="sales",
        null=True,
        blank=True,
    )

    sale_date = models.DateTimeField(default=timezone.now)

    total_amount = models.PositiveBigIntegerField(default=0)
    paid_amount = models.PositiveBigIntegerField(default=0)
    outstanding_amount = models.PositiveBigIntegerField(default=0, editable=False)

    status = models.CharField(
        max_length=32,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
    )

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-sale_date"]
        indexes = [
            models.Index(fields=["sale_date"]),
            models.Index(fields=["status"]),
            models.Index(fields=["customer", "sale_date"]),
        ]

    def clean(self):
        if (self.paid_amount or 0) > (self.total_amount or 0):
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total_amount"})

    def save(self, *args, **kwargs):
        if not self.sale_number:
            prefix = timezone.now().strftime("INV%Y%m%d")
            self.sale_number = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        self.full_clean(exclude=["outstanding_amount"])
        self.outstanding_amount = (self.total_amount or 0) - (self.paid_amount or 0)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.sale_number} | {self.total_amount}"
