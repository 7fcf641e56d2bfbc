# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseOrder, PurchaseOrderPayment, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "is_active", "deleted_at")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")


class PurchaseOrderPaymentInline(admin.TabularInline):
    model = PurchaseOrderPayment
    extra = 0
    fields = ("payment_date", "amount", "payment_method", "reference_number")


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = (
        "po_number",
        "supplier",
        "branch",
        "order_date",
        "status",
        "total_amount",
        "paid_amount",
        "outstanding_amount",
    )
    list_filter = ("status", "branch")
    search_fields = ("po_number", "supplier__name")
    readonly_fields = ("outstanding_amount", "created_at")
    inlines = [PurchaseOrderPaymentInline]
