# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.models.period import AccountingPeriod

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "normal_balance",
        "is_header",
        "parent",
        "level",
        "is_active",
    )
    list_filter = ("account_type", "is_header", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)
    readonly_fields = ("level", "deleted_at", "created_by", "updated_by", "created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "account_type", "category", "normal_balance"),
            },
        ),
        (
            "Hierarchy",
            {
                "fields": ("is_header", "parent", "level"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "description", "deleted_at"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_by", "updated_by", "created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None):
        # soft delete only (account_registry.soft_delete_account)
        return False


# ============================================================
# JOURNAL ENTRY (READ-ONLY, lifecycle goes through the service)
# ============================================================


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0
    fields = ("sort_order", "account", "branch", "description", "debit_amount", "credit_amount")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "journal_number",
        "journal_date",
        "description",
        "source_type",
        "status",
        "posted_at",
    )
    list_filter = ("status", "source_type", "journal_date")
    search_fields = ("journal_number", "description", "source_id")
    ordering = ("-journal_date", "-id")
    inlines = [JournalEntryLineInline]

    readonly_fields = (
        "journal_number",
        "journal_date",
        "description",
        "source_type",
        "source_id",
        "status",
        "branch",
        "posted_at",
        "posted_by",
        "voided_at",
        "voided_by",
        "void_reason",
        "created_by",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# ACCOUNTING PERIOD
# ============================================================


@admin.register(AccountingPeriod)
class AccountingPeriodAdmin(admin.ModelAdmin):
    list_display = ("name", "year", "month", "status", "closed_at", "closed_by")
    list_filter = ("status", "year")
    ordering = ("-year", "-month")
    readonly_fields = ("start_date", "end_date", "status", "closed_at", "closed_by", "created_by")

    def has_delete_permission(self, request, obj=None):
        return False
