# accounting/tests/test_aging.py

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import TestCase
from django.utils import timezone

from accounting.services import aging_service
from accounting.services.dates import to_epoch_ms
from accounting.services.exceptions import CounterpartyNotFound
from branches.models import Branch
from purchases.models import PurchaseOrder, PurchaseOrderPayment, Supplier
from sales.models import Customer, Sale, SalePayment

AS_OF = datetime(2026, 6, 30, 12, 0, tzinfo=dt_timezone.utc)


def days_before(n: int) -> datetime:
    return AS_OF - timedelta(days=n)


class BucketTests(TestCase):
    def test_bucket_boundaries(self):
        cases = {
            0: "current",
            30: "current",
            31: "days_31_to_60",
            60: "days_31_to_60",
            61: "days_61_to_90",
            90: "days_61_to_90",
            91: "over_90_days",
        }
        for days, bucket in cases.items():
            with self.subTest(days=days):
                self.assertEqual(aging_service.bucket_for(days), bucket)


class PayablesAgingTests(TestCase):
    """
    GUARANTEES:
    - Only open purchase orders (Submitted/Received, owing, not deleted) count
    - Every open document lands in exactly one bucket
    - Suppliers are ordered by total outstanding, largest first
    """

    def setUp(self):
        self.kibble = Supplier.objects.create(name="Kibble Co", phone="0800-111")
        self.aquatics = Supplier.objects.create(name="Aquatics Ltd")

    def _po(self, number, supplier, days_old, total, paid=0, status=PurchaseOrder.STATUS_RECEIVED, **extra):
        return PurchaseOrder.objects.create(
            po_number=number,
            supplier=supplier,
            order_date=days_before(days_old),
            status=status,
            total_amount=total,
            paid_amount=paid,
            **extra,
        )

    def test_single_bill_lands_in_its_bucket(self):
        self._po("PO-1", self.kibble, 45, 500000)

        report = aging_service.get_payables_aging(as_of=AS_OF)

        self.assertEqual(report["summary"]["total_outstanding"], 500000)
        self.assertEqual(report["summary"]["days_31_to_60"], 500000)
        self.assertEqual(report["summary"]["current"], 0)

        row = report["supplier_aging"][0]
        self.assertEqual(row["supplier_id"], self.kibble.id)
        self.assertEqual(row["days_31_to_60"], 500000)
        self.assertEqual(row["bill_count"], 1)
        self.assertEqual(row["oldest_bill_date"], to_epoch_ms(days_before(45)))

    def test_documents_on_bucket_edges(self):
        self._po("PO-30", self.kibble, 30, 100)
        self._po("PO-31", self.kibble, 31, 200)
        self._po("PO-60", self.kibble, 60, 400)
        self._po("PO-61", self.kibble, 61, 800)
        self._po("PO-90", self.kibble, 90, 1600)
        self._po("PO-91", self.kibble, 91, 3200)
        # One hour short of 31 whole days still counts as 30.
        PurchaseOrder.objects.create(
            po_number="PO-30H",
            supplier=self.aquatics,
            order_date=days_before(31) + timedelta(hours=1),
            status=PurchaseOrder.STATUS_RECEIVED,
            total_amount=10,
        )

        summary = aging_service.get_payables_aging(as_of=AS_OF)["summary"]

        self.assertEqual(summary["current"], 110)
        self.assertEqual(summary["days_31_to_60"], 600)
        self.assertEqual(summary["days_61_to_90"], 2400)
        self.assertEqual(summary["over_90_days"], 3200)
        self.assertEqual(summary["total_outstanding"], 6310)

    def test_closed_documents_are_excluded(self):
        self._po("PO-DRAFT", self.kibble, 10, 1000, status=PurchaseOrder.STATUS_DRAFT)
        self._po("PO-CANCEL", self.kibble, 10, 1000, status=PurchaseOrder.STATUS_CANCELLED)
        self._po("PO-PAID", self.kibble, 10, 1000, paid=1000)
        self._po("PO-GONE", self.kibble, 10, 1000, deleted_at=timezone.now())
        self._po("PO-FUTURE", self.kibble, -5, 1000)

        report = aging_service.get_payables_aging(as_of=AS_OF)

        self.assertEqual(report["summary"]["total_outstanding"], 0)
        self.assertEqual(report["supplier_aging"], [])
        self.assertEqual(report["summary"]["total_suppliers"], 2)
        self.assertEqual(report["summary"]["suppliers_with_balance"], 0)

    def test_rows_sorted_and_bucket_totals_add_up(self):
        self._po("PO-1", self.kibble, 5, 1000, status=PurchaseOrder.STATUS_SUBMITTED)
        self._po("PO-2", self.kibble, 75, 2000, paid=500)
        self._po("PO-3", self.aquatics, 120, 9000)

        report = aging_service.get_payables_aging(as_of=AS_OF)

        self.assertEqual(
            [r["supplier_name"] for r in report["supplier_aging"]], ["Aquatics Ltd", "Kibble Co"]
        )
        kibble = report["supplier_aging"][1]
        self.assertEqual((kibble["current"], kibble["days_61_to_90"]), (1000, 1500))
        self.assertEqual(kibble["total_outstanding"], 2500)

        summary = report["summary"]
        self.assertEqual(
            sum(summary[b] for b in aging_service.BUCKETS), summary["total_outstanding"]
        )
        self.assertEqual(summary["over_90_days"], 9000)

    def test_branch_filter(self):
        north = Branch.objects.create(name="North")
        self._po("PO-N", self.kibble, 10, 1000, branch=north)
        self._po("PO-X", self.kibble, 10, 4000)

        report = aging_service.get_payables_aging(as_of=AS_OF, branch=north.pk)
        self.assertEqual(report["summary"]["total_outstanding"], 1000)

    def test_supplier_drill_down(self):
        first = self._po("PO-1", self.kibble, 40, 3000, paid=1000, due_date=days_before(10))
        self._po("PO-2", self.kibble, 20, 500)
        PurchaseOrderPayment.objects.create(
            purchase_order=first, amount=1000, payment_date=days_before(30), reference_number="TRX-1"
        )
        PurchaseOrderPayment.objects.create(
            purchase_order=first, amount=50, payment_date=days_before(1), deleted_at=timezone.now()
        )

        result = aging_service.get_supplier_outstanding(self.kibble.id, include_history=True, now=AS_OF)

        self.assertEqual(result["supplier"]["name"], "Kibble Co")
        self.assertEqual(result["summary"]["total_outstanding"], 2500)
        self.assertEqual(result["summary"]["bill_count"], 2)
        self.assertEqual(result["summary"]["average_days_outstanding"], 30)
        self.assertEqual(result["summary"]["oldest_bill_date"], to_epoch_ms(days_before(40)))
        self.assertEqual(
            [b["bill_number"] for b in result["outstanding_bills"]], ["PO-1", "PO-2"]
        )
        self.assertEqual(result["outstanding_bills"][0]["due_date"], to_epoch_ms(days_before(10)))
        self.assertEqual(len(result["payment_history"]), 1)
        self.assertEqual(result["payment_history"][0]["reference_number"], "TRX-1")

    def test_drill_down_without_history(self):
        result = aging_service.get_supplier_outstanding(self.aquatics.id, now=AS_OF)

        self.assertIsNone(result["payment_history"])
        self.assertEqual(result["summary"]["total_outstanding"], 0)
        self.assertIsNone(result["summary"]["oldest_bill_date"])

    def test_unknown_supplier(self):
        with self.assertRaises(CounterpartyNotFound):
            aging_service.get_supplier_outstanding("not-a-uuid")


class ReceivablesAgingTests(TestCase):
    def setUp(self):
        self.rex = Customer.objects.create(name="Rex Owner", phone="0700-222")
        self.tom = Customer.objects.create(name="Tom Catlover")

    def _sale(self, customer, days_old, total, paid=0, status=Sale.STATUS_COMPLETED, **extra):
        return Sale.objects.create(
            customer=customer,
            sale_date=days_before(days_old),
            total_amount=total,
            paid_amount=paid,
            status=status,
            **extra,
        )

    def test_receivables_report(self):
        self._sale(self.rex, 10, 4000, paid=1000)
        self._sale(self.rex, 95, 2000)
        self._sale(self.tom, 50, 1500)
        self._sale(self.tom, 5, 800, status=Sale.STATUS_DRAFT)

        report = aging_service.get_receivables_aging(as_of=AS_OF)

        summary = report["summary"]
        self.assertEqual(summary["total_outstanding"], 6500)
        self.assertEqual(
            (summary["current"], summary["days_31_to_60"], summary["over_90_days"]),
            (3000, 1500, 2000),
        )
        self.assertEqual(summary["total_customers"], 2)
        self.assertEqual(summary["customers_with_balance"], 2)

        rex = report["customer_aging"][0]
        self.assertEqual(rex["customer_name"], "Rex Owner")
        self.assertEqual(rex["invoice_count"], 2)
        self.assertEqual(rex["oldest_invoice_date"], to_epoch_ms(days_before(95)))

    def test_customer_drill_down(self):
        sale = self._sale(self.rex, 12, 4000, paid=1500)
        self._sale(self.tom, 3, 999)
        SalePayment.objects.create(sale=sale, amount=1500, payment_date=days_before(11))

        result = aging_service.get_customer_outstanding(self.rex.id, include_history=True, now=AS_OF)

        invoice = result["outstanding_invoices"][0]
        self.assertEqual(invoice["type"], "SALE")
        self.assertEqual(invoice["invoice_number"], sale.sale_number)
        self.assertEqual(invoice["outstanding_amount"], 2500)
        self.assertEqual(invoice["days_outstanding"], 12)
        self.assertEqual(result["summary"]["invoice_count"], 1)
        self.assertEqual(result["payment_history"][0]["amount"], 1500)

    def test_unknown_customer(self):
        with self.assertRaises(CounterpartyNotFound):
            aging_service.get_customer_outstanding("00000000-0000-0000-0000-000000000000")

    def test_overdue_invoices_most_overdue_first(self):
        self._sale(self.rex, 45, 1000)
        self._sale(self.tom, 100, 700)
        self._sale(self.tom, 10, 500)

        rows = aging_service.get_overdue_invoices(now=AS_OF)

        self.assertEqual([r["days_overdue"] for r in rows], [100, 45])
        self.assertEqual(rows[0]["customer_name"], "Tom Catlover")

        stricter = aging_service.get_overdue_invoices(days_overdue=60, now=AS_OF)
        self.assertEqual(len(stricter), 1)

        everything = aging_service.get_overdue_invoices(days_overdue=0, now=AS_OF)
        self.assertEqual(len(everything), 3)


class CollectionMetricsTests(TestCase):
    def setUp(self):
        self.rex = Customer.objects.create(name="Rex Owner")
        self.tom = Customer.objects.create(name="Tom Catlover")

        self.start = days_before(30)
        self.end = AS_OF

        older = Sale.objects.create(
            customer=self.rex, sale_date=days_before(60), total_amount=8000, paid_amount=3000
        )
        SalePayment.objects.create(sale=older, amount=3000, payment_date=days_before(20))

        settled = Sale.objects.create(
            customer=self.rex, sale_date=days_before(25), total_amount=10000, paid_amount=10000
        )
        SalePayment.objects.create(sale=settled, amount=6000, payment_date=days_before(23))
        SalePayment.objects.create(sale=settled, amount=4000, payment_date=days_before(20))

        partial = Sale.objects.create(
            customer=self.tom, sale_date=days_before(10), total_amount=20000, paid_amount=5000
        )
        SalePayment.objects.create(sale=partial, amount=5000, payment_date=days_before(9))

    def test_metrics(self):
        result = aging_service.get_collection_metrics(start=self.start, end=self.end)

        metrics = result["metrics"]
        self.assertEqual(metrics["total_sales"], 30000)
        self.assertEqual(metrics["total_collected"], 18000)
        self.assertEqual(metrics["collection_rate"], 60.0)
        self.assertEqual(metrics["average_days_to_collect"], 5)
        self.assertEqual(metrics["outstanding_at_period_end"], 20000)
        self.assertEqual(metrics["new_ar"], 15000)
        self.assertEqual(metrics["collected_ar"], 3000)
        self.assertEqual(result["period"]["start"], to_epoch_ms(self.start))

    def test_top_collectors(self):
        result = aging_service.get_collection_metrics(start=self.start, end=self.end)

        top = result["top_collectors"]
        self.assertEqual([c["customer_name"] for c in top], ["Rex Owner", "Tom Catlover"])
        self.assertEqual((top[0]["total_paid"], top[0]["payment_count"]), (13000, 3))

    def test_empty_window(self):
        result = aging_service.get_collection_metrics(start=days_before(400), end=days_before(300))

        self.assertEqual(result["metrics"]["collection_rate"], 0)
        self.assertEqual(result["metrics"]["average_days_to_collect"], 0)
        self.assertEqual(result["top_collectors"], [])

    def test_window_required(self):
        with self.assertRaises(ValueError):
            aging_service.get_collection_metrics(start=None, end=self.end)
