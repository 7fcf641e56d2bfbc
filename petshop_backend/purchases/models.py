# purchases/models.py

"""
PURCHASES MODELS (AP SOURCE DOCUMENTS)

The ledger's aging generator reads these documents directly:
- PurchaseOrder.outstanding_amount is what the business still owes
- PurchaseOrderPayment rows are the settlement history per order

Money is stored as integer minor units (kobo/cents), never floats.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from branches.models import Branch


class Supplier(models.Model):
    """
    Supplier master.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["deleted_at"]),
        ]

    def __str__(self):
        return self.name


class PurchaseOrder(models.Model):
    """
    Supplier bill / purchase order header.

    Guarantees:
    - outstanding_amount == total_amount - paid_amount (recomputed on save)
    - paid_amount never exceeds total_amount
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_DRAFT = "Draft"
    STATUS_SUBMITTED = "Submitted"
    STATUS_RECEIVED = "Received"
    STATUS_CANCELLED = "Cancelled"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_RECEIVED, "Received"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses that represent a bill the business actually owes.
    OPEN_STATUSES = (STATUS_SUBMITTED, STATUS_RECEIVED)

    po_number = models.CharField(max_length=64, unique=True)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
        null=True,
        blank=True,
    )

    order_date = models.DateTimeField(default=timezone.now)
    due_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)

    total_amount = models.PositiveBigIntegerField(default=0)
    paid_amount = models.PositiveBigIntegerField(default=0)
    outstanding_amount = models.PositiveBigIntegerField(default=0, editable=False)

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-order_date"]
        indexes = [
            models.Index(fields=["supplier", "order_date"]),
            models.Index(fields=["status", "order_date"]),
            models.Index(fields=["branch", "order_date"]),
        ]

    def clean(self):
        self.po_number = (self.po_number or "").strip()
        if not self.po_number:
            raise ValidationError({"po_number": "po_number is required"})

        if (self.paid_amount or 0) > (self.total_amount or 0):
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total_amount"})

    def save(self, *args, **kwargs):
        self.full_clean(exclude=["outstanding_amount"])
        self.outstanding_amount = (self.total_amount or 0) - (self.paid_amount or 0)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.po_number} ({self.supplier.name})"


class PurchaseOrderPayment(models.Model):
    """
    A settlement made against a purchase order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateTimeField(default=timezone.now)
    amount = models.PositiveBigIntegerField()
    payment_method = models.CharField(max_length=32, default="cash")
    reference_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date"]
        indexes = [
            models.Index(fields=["purchase_order", "payment_date"]),
        ]

    def clean(self):
        if not self.amount or self.amount <= 0:
            raise ValidationError({"amount": "amount must be > 0"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"Payment {self.amount} on {self.purchase_order_id}"
