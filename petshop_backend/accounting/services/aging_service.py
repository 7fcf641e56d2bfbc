# accounting/services/aging_service.py

"""
======================================================
PATH: accounting/services/aging_service.py
======================================================
AP / AR AGING REPORT GENERATOR

Source of truth: open billing documents, NOT the general ledger.
- Payables:    purchase orders (Submitted / Received)
- Receivables: sales (Completed)

A document is open when it is not soft-deleted, is in an open status
and has outstanding_amount > 0.

Buckets (days = floor((as_of - document_date) / 1 day)):
- current        days <= 30
- days_31_to_60  30 < days <= 60
- days_61_to_90  60 < days <= 90
- over_90_days   days > 90

Every open document lands in exactly one bucket.

NOTE:
The aggregate reports age documents against `as_of`. The per-counterparty
drill-downs and the overdue list age against `now` (wall clock unless
injected), so the two can disagree for a historical as_of.

READ-ONLY. Never mutates documents.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db.models import Count, Max, Q, Sum
from django.utils import timezone

from accounting.services.dates import days_between, to_datetime, to_epoch_ms
from accounting.services.exceptions import CounterpartyNotFound
from purchases.models import PurchaseOrder, PurchaseOrderPayment, Supplier
from sales.models import Customer, Sale, SalePayment

logger = logging.getLogger(__name__)

BUCKETS = ("current", "days_31_to_60", "days_61_to_90", "over_90_days")

DEFAULT_DAYS_OVERDUE = 30
TOP_COLLECTORS_LIMIT = 10


def bucket_for(days: int) -> str:
    if days <= 30:
        return "current"
    if days <= 60:
        return "days_31_to_60"
    if days <= 90:
        return "days_61_to_90"
    return "over_90_days"


def _empty_buckets() -> dict:
    return {name: 0 for name in BUCKETS}


def _branch_pk(branch):
    if branch in (None, ""):
        return None
    return getattr(branch, "pk", branch)


def _average(values) -> float:
    values = list(values)
    if not values:
        return 0
    return sum(values) / len(values)


# ------------------------------------------------------------
# Open document querysets
# ------------------------------------------------------------


def open_purchase_orders(*, branch=None, as_of=None):
    qs = PurchaseOrder.objects.filter(
        deleted_at__isnull=True,
        status__in=PurchaseOrder.OPEN_STATUSES,
        outstanding_amount__gt=0,
    )
    if as_of is not None:
        qs = qs.filter(order_date__lte=as_of)
    if _branch_pk(branch) is not None:
        qs = qs.filter(branch_id=_branch_pk(branch))
    return qs


def open_sales(*, branch=None, as_of=None):
    qs = Sale.objects.filter(
        deleted_at__isnull=True,
        status=Sale.STATUS_COMPLETED,
        outstanding_amount__gt=0,
    )
    if as_of is not None:
        qs = qs.filter(sale_date__lte=as_of)
    if _branch_pk(branch) is not None:
        qs = qs.filter(branch_id=_branch_pk(branch))
    return qs


# ------------------------------------------------------------
# Shared aggregation
# ------------------------------------------------------------


def _group_by_counterparty(documents, *, as_of, date_of, counterparty_of, keys) -> list[dict]:
    """
    Fold documents into one row per counterparty.

    `keys` names the per-side output fields:
    (id_key, name_key, oldest_key, count_key).
    """
    id_key, name_key, oldest_key, count_key = keys
    rows: dict = {}

    for doc in documents:
        counterparty = counterparty_of(doc)
        doc_date = date_of(doc)
        bucket = bucket_for(days_between(as_of, doc_date))

        row = rows.get(counterparty.pk)
        if row is None:
            row = {
                id_key: counterparty.pk,
                name_key: counterparty.name,
                "phone": counterparty.phone,
                "total_outstanding": 0,
                **_empty_buckets(),
                oldest_key: doc_date,
                count_key: 0,
            }
            rows[counterparty.pk] = row

        row[bucket] += doc.outstanding_amount
        row["total_outstanding"] += doc.outstanding_amount
        row[count_key] += 1
        if doc_date < row[oldest_key]:
            row[oldest_key] = doc_date

    result = sorted(rows.values(), key=lambda r: r["total_outstanding"], reverse=True)
    for row in result:
        row[oldest_key] = to_epoch_ms(row[oldest_key])
    return result


def _summary(rows, *, total_counterparties: int, total_key: str, with_balance_key: str) -> dict:
    summary = {"total_outstanding": sum(r["total_outstanding"] for r in rows)}
    for name in BUCKETS:
        summary[name] = sum(r[name] for r in rows)
    summary[total_key] = total_counterparties
    summary[with_balance_key] = len(rows)
    return summary


def _get_counterparty(model, counterparty_id, label: str):
    try:
        obj = model.objects.filter(pk=counterparty_id, deleted_at__isnull=True).first()
    except (ValidationError, ValueError, TypeError):
        obj = None
    if obj is None:
        raise CounterpartyNotFound(
            f"{label} not found",
            counterparty=label.lower(),
            counterparty_id=str(counterparty_id),
        )
    return obj


def _payment_row(payment) -> dict:
    return {
        "payment_id": payment.id,
        "payment_date": to_epoch_ms(payment.payment_date),
        "amount": payment.amount,
        "payment_method": payment.payment_method,
        "reference_number": payment.reference_number,
        "notes": payment.notes,
    }


# ------------------------------------------------------------
# Payables (AP)
# ------------------------------------------------------------


def get_payables_aging(*, as_of=None, branch=None) -> dict:
    cutoff = to_datetime(as_of, end_of_day=True) or timezone.now()

    documents = open_purchase_orders(branch=branch, as_of=cutoff).select_related("supplier")
    rows = _group_by_counterparty(
        documents,
        as_of=cutoff,
        date_of=lambda po: po.order_date,
        counterparty_of=lambda po: po.supplier,
        keys=("supplier_id", "supplier_name", "oldest_bill_date", "bill_count"),
    )

    summary = _summary(
        rows,
        total_counterparties=Supplier.objects.filter(deleted_at__isnull=True).count(),
        total_key="total_suppliers",
        with_balance_key="suppliers_with_balance",
    )

    logger.info(
        "AP aging generated",
        extra={
            "as_of": to_epoch_ms(cutoff),
            "branch_id": str(_branch_pk(branch)) if _branch_pk(branch) else None,
            "total_outstanding": summary["total_outstanding"],
        },
    )

    return {
        "as_of": to_epoch_ms(cutoff),
        "summary": summary,
        "supplier_aging": rows,
    }


def get_supplier_outstanding(supplier_id, *, include_history: bool = False, now=None) -> dict:
    supplier = _get_counterparty(Supplier, supplier_id, "Supplier")
    current_time = to_datetime(now) or timezone.now()

    bills = []
    for po in open_purchase_orders().filter(supplier=supplier).order_by("order_date", "po_number"):
        bills.append(
            {
                "id": po.id,
                "bill_number": po.po_number,
                "bill_date": to_epoch_ms(po.order_date),
                "due_date": to_epoch_ms(po.due_date),
                "total_amount": po.total_amount,
                "paid_amount": po.paid_amount,
                "outstanding_amount": po.outstanding_amount,
                "days_outstanding": days_between(current_time, po.order_date),
                "status": po.status,
            }
        )

    result = {
        "supplier": {
            "id": supplier.id,
            "name": supplier.name,
            "phone": supplier.phone,
            "email": supplier.email,
        },
        "summary": {
            "total_outstanding": sum(b["outstanding_amount"] for b in bills),
            "bill_count": len(bills),
            "oldest_bill_date": bills[0]["bill_date"] if bills else None,
            "average_days_outstanding": _average(b["days_outstanding"] for b in bills),
        },
        "outstanding_bills": bills,
        "payment_history": None,
    }

    if include_history:
        payments = (
            PurchaseOrderPayment.objects.filter(
                purchase_order__supplier=supplier,
                deleted_at__isnull=True,
            )
            .order_by("-payment_date")
        )
        result["payment_history"] = [_payment_row(p) for p in payments]

    return result


# ------------------------------------------------------------
# Receivables (AR)
# ------------------------------------------------------------


def get_receivables_aging(*, as_of=None, branch=None) -> dict:
    cutoff = to_datetime(as_of, end_of_day=True) or timezone.now()

    documents = open_sales(branch=branch, as_of=cutoff).select_related("customer")
    rows = _group_by_counterparty(
        documents,
        as_of=cutoff,
        date_of=lambda sale: sale.sale_date,
        counterparty_of=lambda sale: sale.customer,
        keys=("customer_id", "customer_name", "oldest_invoice_date", "invoice_count"),
    )

    summary = _summary(
        rows,
        total_counterparties=Customer.objects.filter(deleted_at__isnull=True).count(),
        total_key="total_customers",
        with_balance_key="customers_with_balance",
    )

    logger.info(
        "AR aging generated",
        extra={
            "as_of": to_epoch_ms(cutoff),
            "branch_id": str(_branch_pk(branch)) if _branch_pk(branch) else None,
            "total_outstanding": summary["total_outstanding"],
        },
    )

    return {
        "as_of": to_epoch_ms(cutoff),
        "summary": summary,
        "customer_aging": rows,
    }


def _invoice_row(sale, current_time) -> dict:
    return {
        "type": "SALE",
        "id": sale.id,
        "invoice_number": sale.sale_number,
        "invoice_date": to_epoch_ms(sale.sale_date),
        "due_date": None,
        "total_amount": sale.total_amount,
        "paid_amount": sale.paid_amount,
        "outstanding_amount": sale.outstanding_amount,
        "days_outstanding": days_between(current_time, sale.sale_date),
        "status": sale.status,
    }


def get_customer_outstanding(customer_id, *, include_history: bool = False, now=None) -> dict:
    customer = _get_counterparty(Customer, customer_id, "Customer")
    current_time = to_datetime(now) or timezone.now()

    invoices = [
        _invoice_row(sale, current_time)
        for sale in open_sales().filter(customer=customer).order_by("sale_date", "sale_number")
    ]

    result = {
        "customer": {
            "id": customer.id,
            "name": customer.name,
            "phone": customer.phone,
            "email": customer.email,
        },
        "summary": {
            "total_outstanding": sum(i["outstanding_amount"] for i in invoices),
            "invoice_count": len(invoices),
            "oldest_invoice_date": invoices[0]["invoice_date"] if invoices else None,
            "average_days_outstanding": _average(i["days_outstanding"] for i in invoices),
        },
        "outstanding_invoices": invoices,
        "payment_history": None,
    }

    if include_history:
        payments = (
            SalePayment.objects.filter(sale__customer=customer, deleted_at__isnull=True)
            .order_by("-payment_date")
        )
        result["payment_history"] = [_payment_row(p) for p in payments]

    return result


def get_overdue_invoices(*, branch=None, days_overdue: int | None = None, now=None) -> list[dict]:
    """
    Completed sales still owing at least `days_overdue` days after the sale
    date, most overdue first. Used for reminders.
    """
    threshold = DEFAULT_DAYS_OVERDUE if days_overdue is None else int(days_overdue)
    current_time = to_datetime(now) or timezone.now()

    overdue = []
    for sale in open_sales(branch=branch).select_related("customer"):
        days = days_between(current_time, sale.sale_date)
        if days < threshold:
            continue
        overdue.append(
            {
                "type": "SALE",
                "id": sale.id,
                "invoice_number": sale.sale_number,
                "invoice_date": to_epoch_ms(sale.sale_date),
                "customer_id": sale.customer_id,
                "customer_name": sale.customer.name,
                "customer_phone": sale.customer.phone,
                "total_amount": sale.total_amount,
                "outstanding_amount": sale.outstanding_amount,
                "days_overdue": days,
            }
        )

    overdue.sort(key=lambda row: row["days_overdue"], reverse=True)
    return overdue


def get_collection_metrics(*, start, end, branch=None) -> dict:
    """
    Collection performance for completed sales within [start, end].

    - total_sales / new_ar:   sales dated in the window
    - total_collected:        sale payments dated in the window
    - collected_ar:           total_collected - (total_sales - new_ar),
                              i.e. money that came in against older invoices
    - average_days_to_collect: fully paid sales in the window, sale date to
                              last payment, floored days
    """
    start_dt = to_datetime(start)
    end_dt = to_datetime(end, end_of_day=True)
    if start_dt is None or end_dt is None:
        raise ValueError("start and end are required for collection metrics")

    branch_id = _branch_pk(branch)

    sales = Sale.objects.filter(deleted_at__isnull=True, status=Sale.STATUS_COMPLETED)
    payments = SalePayment.objects.filter(deleted_at__isnull=True)
    if branch_id is not None:
        sales = sales.filter(branch_id=branch_id)
        payments = payments.filter(sale__branch_id=branch_id)

    period_sales = sales.filter(sale_date__gte=start_dt, sale_date__lte=end_dt)
    sales_agg = period_sales.aggregate(
        total=Sum("total_amount"), outstanding=Sum("outstanding_amount")
    )
    total_sales = int(sales_agg["total"] or 0)
    new_ar = int(sales_agg["outstanding"] or 0)

    period_payments = payments.filter(payment_date__gte=start_dt, payment_date__lte=end_dt)
    total_collected = int(period_payments.aggregate(total=Sum("amount"))["total"] or 0)

    collection_rate = total_collected * 100 / total_sales if total_sales > 0 else 0

    fully_paid = period_sales.filter(outstanding_amount=0).annotate(
        last_payment=Max("payments__payment_date", filter=Q(payments__deleted_at__isnull=True))
    )
    days_to_collect = [
        days_between(sale.last_payment, sale.sale_date)
        for sale in fully_paid
        if sale.last_payment is not None
    ]

    outstanding_at_end = int(
        sales.filter(sale_date__lte=end_dt).aggregate(total=Sum("outstanding_amount"))["total"]
        or 0
    )

    collectors = (
        period_payments.values("sale__customer_id", "sale__customer__name")
        .annotate(total_paid=Sum("amount"), payment_count=Count("id"))
        .order_by("-total_paid", "sale__customer__name")[:TOP_COLLECTORS_LIMIT]
    )

    return {
        "period": {
            "start": to_epoch_ms(start_dt),
            "end": to_epoch_ms(end_dt),
        },
        "metrics": {
            "total_sales": total_sales,
            "total_collected": total_collected,
            "collection_rate": collection_rate,
            "average_days_to_collect": _average(days_to_collect),
            "outstanding_at_period_end": outstanding_at_end,
            "new_ar": new_ar,
            "collected_ar": total_collected - (total_sales - new_ar),
        },
        "top_collectors": [
            {
                "customer_id": row["sale__customer_id"],
                "customer_name": row["sale__customer__name"],
                "total_paid": int(row["total_paid"] or 0),
                "payment_count": row["payment_count"],
            }
            for row in collectors
        ],
    }
