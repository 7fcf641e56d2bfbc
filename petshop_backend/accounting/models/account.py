# accounting/models/account.py

"""
======================================================
PATH: accounting/models/account.py
======================================================
ACCOUNT MODEL (CHART OF ACCOUNTS NODE)

Guarantees:
- Account codes are unique among non-deleted accounts
- Code + name are normalized (trimmed)
- normal_balance defaults from account_type (contra accounts may override)
- A parent must be a non-deleted header account, never the account itself
- level is derived from the parent chain (roots are level 1)
- Never hard-deleted: soft delete via deleted_at (see account_registry)
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    NORMAL_BALANCES = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )
    category = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Sub-classification within the type (e.g. Current Asset, Operating Expense)",
    )
    normal_balance = models.CharField(
        max_length=10,
        choices=NORMAL_BALANCES,
        blank=True,
    )

    is_header = models.BooleanField(
        default=False,
        help_text="Aggregation-only node; never receives postings",
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        related_name="children",
        null=True,
        blank=True,
    )
    level = models.PositiveSmallIntegerField(default=1, editable=False)

    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_by = models.CharField(max_length=150, blank=True, default="")
    updated_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["code"]),
            models.Index(fields=["account_type"]),
            models.Index(fields=["parent"]),
            models.Index(fields=["is_active"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_account_code_not_deleted",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @classmethod
    def default_normal_balance(cls, account_type: str) -> str:
        return cls.DEBIT if account_type in cls.DEBIT_NORMAL_TYPES else cls.CREDIT

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.DEBIT

    def signed_balance(self, debit: int, credit: int) -> int:
        """
        Balance contribution of (debit, credit) under this account's normal side.
        """
        if self.is_debit_normal:
            return debit - credit
        return credit - debit

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        if not self.normal_balance and self.account_type:
            self.normal_balance = self.default_normal_balance(self.account_type)

        if self.parent_id is not None:
            if self.pk is not None and self.parent_id == self.pk:
                raise ValidationError({"parent": "An account cannot be its own parent"})

            parent = self.parent
            if parent.deleted_at is not None:
                raise ValidationError({"parent": "Parent account has been deleted"})
            if not parent.is_header:
                raise ValidationError({"parent": "Parent account must be a header account"})

            self.level = (parent.level or 1) + 1
        else:
            self.level = 1

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
