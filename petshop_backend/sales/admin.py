# sales/admin.py

from django.contrib import admin

from sales.models import Customer, Sale, SalePayment


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "deleted_at")
    search_fields = ("name", "phone", "email")


class SalePaymentInline(admin.TabularInline):
    model = SalePayment
    extra = 0
    fields = ("payment_date", "amount", "payment_method", "reference_number")


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "sale_number",
        "customer",
        "branch",
        "sale_date",
        "status",
        "total_amount",
        "paid_amount",
        "outstanding_amount",
    )
    list_filter = ("status", "branch")
    search_fields = ("sale_number", "customer__name")
    readonly_fields = ("outstanding_amount", "created_at")
    inlines = [SalePaymentInline]
