"""
Tests for MwsRevenueService: monthly calculation against the database,
idempotent upserts and payment registration.
"""
import unittest
import uuid
from datetime import date, datetime

from sqlmodel import select

from leadcrm.models import MwsMonthlyRevenue
from leadcrm.services.mws_revenue_service import MwsRevenueService
from support import DatabaseTestCase


class TestMwsRevenueService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = MwsRevenueService(self.session)
        self.client = self.make_client(fixed_fee=100, percentage=20)
        self.make_lead(self.client, status="Won", value=1000, created_at=datetime(2024, 5, 12, 15, 0))
        self.make_ad_spend(self.client, 200, date(2024, 5, 2))

    def rows(self):
        return self.session.exec(select(MwsMonthlyRevenue)).all()

    def test_calculate_for_client(self):
        result = self.service.calculate_for_client(self.client.id, 2024, 5)

        self.assertAlmostEqual(result["mws_revenue"], 260)
        self.assertEqual(result["client_profit"], 800)
        self.assertEqual(result["month"], date(2024, 5, 1))
        self.assertIsNone(result["saved"])
        self.assertTrue(result["has_pending_changes"])

    def test_other_months_are_not_counted(self):
        result = self.service.calculate_for_client(self.client.id, 2024, 6)
        self.assertEqual(result["client_revenue"], 0)
        self.assertEqual(result["mws_revenue"], 100)

    def test_upsert_is_idempotent(self):
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 260, 0, "unpaid")
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 260, 0, "unpaid")

        rows = self.rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].revenue_amount, 260)

    def test_upsert_normalizes_the_month(self):
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 100)
        row = self.service.upsert_revenue(self.client.id, "2024-05-23", 150)

        self.assertEqual(row.month, date(2024, 5, 1))
        self.assertEqual(len(self.rows()), 1)
        self.assertEqual(self.rows()[0].revenue_amount, 150)

    def test_upsert_rejects_unknown_status(self):
        with self.assertRaises(ValueError):
            self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 100, status="overdue")

    def test_save_calculation_clears_pending_flag(self):
        self.service.save_calculation(self.client.id, 2024, 5)
        result = self.service.calculate_for_client(self.client.id, 2024, 5)

        self.assertFalse(result["has_pending_changes"])
        self.assertAlmostEqual(result["saved"]["revenue_amount"], 260)

    def test_save_calculation_keeps_recorded_payment(self):
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 200, 100, "partially_paid")
        row = self.service.save_calculation(self.client.id, 2024, 5)

        self.assertAlmostEqual(row.revenue_amount, 260)
        self.assertEqual(row.paid_amount, 100)
        self.assertEqual(row.status, "partially_paid")

    def test_save_calculation_rederives_status_against_new_total(self):
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 200, 200, "paid")
        row = self.service.save_calculation(self.client.id, 2024, 5)

        self.assertAlmostEqual(row.revenue_amount, 260)
        self.assertEqual(row.paid_amount, 200)
        self.assertEqual(row.status, "partially_paid")

    def test_partial_then_full_payment(self):
        self.service.save_calculation(self.client.id, 2024, 5)

        row = self.service.register_payment(self.client.id, 2024, 5, amount=100)
        self.assertEqual(row.paid_amount, 100)
        self.assertEqual(row.status, "partially_paid")

        row = self.service.register_payment(self.client.id, 2024, 5, paid_in_full=True)
        self.assertAlmostEqual(row.paid_amount, 260)
        self.assertEqual(row.status, "paid")
        self.assertEqual(len(self.rows()), 1)

    def test_payment_without_saved_row_uses_computed_amount(self):
        row = self.service.register_payment(self.client.id, 2024, 5, paid_in_full=True)
        self.assertAlmostEqual(row.revenue_amount, 260)
        self.assertEqual(row.status, "paid")

    def test_payment_after_month_saved_at_zero_uses_computed_amount(self):
        client = self.make_client(name="Gamma Solar", fixed_fee=0, percentage=20)
        self.service.save_calculation(client.id, 2024, 5)
        self.make_lead(client, status="Won", value=1000, created_at=datetime(2024, 5, 20, 9, 0))

        row = self.service.register_payment(client.id, 2024, 5, paid_in_full=True)

        self.assertAlmostEqual(row.revenue_amount, 200)
        self.assertAlmostEqual(row.paid_amount, 200)
        self.assertEqual(row.status, "paid")

    def test_overpayment_leaves_row_untouched(self):
        self.service.save_calculation(self.client.id, 2024, 5)
        with self.assertRaises(ValueError):
            self.service.register_payment(self.client.id, 2024, 5, amount=500)
        self.assertEqual(self.rows()[0].paid_amount, 0)

    def test_month_summary_and_history(self):
        other = self.make_client(name="Beta Plumbing")
        self.service.upsert_revenue(self.client.id, date(2024, 5, 1), 260, 100, "partially_paid")
        self.service.upsert_revenue(other.id, date(2024, 5, 1), 50, 0, "unpaid")
        self.service.upsert_revenue(self.client.id, date(2024, 4, 1), 120, 120, "paid")

        summary = self.service.get_month_summary(2024, 5)
        self.assertEqual(summary["total_revenue"], 310)
        self.assertEqual(summary["total_paid"], 100)
        self.assertEqual(summary["total_unpaid"], 210)
        self.assertEqual(summary["clients"], 2)

        history = self.service.get_payment_history(self.client.id)
        self.assertEqual([row.month for row in history], [date(2024, 5, 1), date(2024, 4, 1)])
        self.assertEqual(self.service.get_payment_history(other.id), [])

    def test_unknown_client(self):
        with self.assertRaises(FileNotFoundError):
            self.service.calculate_for_client(uuid.uuid4(), 2024, 5)


if __name__ == "__main__":
    unittest.main()
