"""
Tests for LeadService: new-lead notifications, historical leads, updates,
notes and cascading deletes.
"""
import unittest
import uuid
from datetime import date, datetime
from unittest.mock import patch

from sqlmodel import select

from leadcrm.models import Appointment, Lead, Note, Notification, Quote, QuoteItem
from leadcrm.services.lead_service import LeadService, lead_display_name
from support import DatabaseTestCase


class TestLeadDisplayName(unittest.TestCase):
    def test_first_known_key_wins(self):
        self.assertEqual(lead_display_name({"full_name": "Ann", "nome": "Anna"}), "Ann")
        self.assertEqual(lead_display_name({"nome": "Giulia"}), "Giulia")
        self.assertEqual(lead_display_name({"email": "x@example.com"}), "N/A")


class TestLeadService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = LeadService(self.session)
        self.owner = self.make_user("owner")
        self.admin = self.make_user("admin", role="admin")
        self.client = self.make_client(user=self.owner, name="Acme Roofing")

    def test_add_lead_notifies_client_and_admins(self):
        lead = self.service.add_lead(self.client.id, {"name": "Jane Doe"}, service="Roof repair")

        self.assertEqual(lead["status"], "New")
        self.assertEqual(lead["notes"], [])
        notifications = self.session.exec(select(Notification)).all()
        by_user = {n.user_id: n for n in notifications}
        self.assertEqual(set(by_user), {self.owner.id, self.admin.id})
        self.assertEqual(by_user[self.owner.id].title, "New lead received!")
        self.assertEqual(by_user[self.admin.id].title, "New lead for Acme Roofing")
        self.assertIn("Jane Doe", by_user[self.admin.id].message)

    def test_add_lead_notifies_every_admin_but_not_other_clients(self):
        second_admin = self.make_user("admin2", role="admin")
        bystander = self.make_user("bystander")

        lead = self.service.add_lead(self.client.id, {"name": "Jane Doe"}, "Roof repair")

        rows = self.session.exec(select(Notification).where(Notification.lead_id == lead["id"])).all()
        recipients = {row.user_id for row in rows}
        self.assertEqual(recipients, {self.owner.id, self.admin.id, second_admin.id})
        self.assertNotIn(bystander.id, recipients)
        self.assertTrue(all(n.lead_id == lead["id"] for n in rows))

    @patch("leadcrm.services.lead_service.lead_display_name", side_effect=RuntimeError("boom"))
    def test_notification_failure_does_not_fail_the_lead(self, _):
        with self.assertLogs("leadcrm.services.lead_service", level="ERROR"):
            lead = self.service.add_lead(self.client.id, {"name": "Jane"})

        self.assertIsNotNone(self.session.get(Lead, lead["id"]))
        self.assertEqual(self.session.exec(select(Notification)).all(), [])

    def test_add_lead_for_unknown_client(self):
        with self.assertRaises(FileNotFoundError):
            self.service.add_lead(uuid.uuid4(), {"name": "x"})

    def test_historical_lead(self):
        lead = self.service.add_historical_lead(
            self.client.id, {"name": "Old Customer"}, "Gutters", 1200, date(2023, 3, 15), notes="Paid cash"
        )

        self.assertEqual(lead["status"], "Won")
        self.assertEqual(lead["data"]["_is_historical"], "true")
        self.assertEqual(lead["created_at"], datetime(2023, 3, 15))
        self.assertEqual([n["content"] for n in lead["notes"]], ["Paid cash"])
        # Historical leads do not raise new-lead notifications
        self.assertEqual(self.session.exec(select(Notification)).all(), [])

    def test_update_historical_lead_notes(self):
        lead = self.service.add_historical_lead(
            self.client.id, {"name": "Old"}, "Gutters", 1200, "2023-03-15", notes="first"
        )
        note_id = lead["notes"][0]["id"]

        updated = self.service.update_historical_lead(
            lead["id"], "Siding", 1500, "2023-04-01", notes="second", existing_note_id=note_id
        )
        self.assertEqual(updated["service"], "Siding")
        self.assertEqual([n["content"] for n in updated["notes"]], ["second"])

        cleared = self.service.update_historical_lead(
            lead["id"], "Siding", 1500, "2023-04-01", notes="  ", existing_note_id=note_id
        )
        self.assertEqual(cleared["notes"], [])

        untouched = self.service.update_historical_lead(lead["id"], "Siding", 1600, "2023-04-01")
        self.assertEqual(untouched["value"], 1600)
        self.assertEqual(untouched["notes"], [])

    def test_update_lead(self):
        lead = self.make_lead(self.client)
        updated = self.service.update_lead(lead.id, {"status": "Won", "value": 900, "id": "ignored"})

        self.assertEqual(updated["status"], "Won")
        self.assertEqual(updated["value"], 900)
        self.assertEqual(updated["id"], lead.id)

        with self.assertRaises(ValueError):
            self.service.update_lead(lead.id, {"status": "Maybe"})
        with self.assertRaises(ValueError):
            self.service.update_lead(lead.id, {})

    def test_notes(self):
        lead = self.make_lead(self.client)
        with_note = self.service.add_note(lead.id, "Called, no answer")
        note_id = with_note["notes"][0]["id"]

        self.assertEqual(self.service.update_note(note_id, "Called twice").content, "Called twice")
        self.service.delete_note(note_id)
        self.assertIsNone(self.session.get(Note, note_id))

    def test_delete_lead_removes_dependents(self):
        lead = self.make_lead(self.client)
        self.service.add_note(lead.id, "note")
        quote = Quote(lead_id=lead.id, client_id=self.client.id, title="Q")
        self.session.add(quote)
        self.session.add(QuoteItem(quote_id=quote.id, description="item"))
        self.session.add(Appointment(lead_id=lead.id, client_id=self.client.id, title="Visit",
                                     appointment_date=date(2024, 5, 1)))
        self.session.add(Notification(user_id=self.owner.id, lead_id=lead.id, message="new lead"))
        self.session.commit()

        self.service.delete_lead(lead.id)

        for model in (Lead, Note, Quote, QuoteItem, Appointment, Notification):
            self.assertEqual(self.session.exec(select(model)).all(), [], model.__name__)

    def test_leads_for_clients_are_grouped(self):
        other = self.make_client(name="Beta")
        self.make_lead(self.client, created_at=datetime(2024, 1, 1))
        self.make_lead(self.client, created_at=datetime(2024, 2, 1))
        self.make_lead(other)

        grouped = self.service.get_leads_for_clients([self.client.id, other.id])
        self.assertEqual(len(grouped[self.client.id]), 2)
        self.assertEqual(len(grouped[other.id]), 1)
        self.assertEqual(grouped[self.client.id][0]["created_at"], datetime(2024, 2, 1))


if __name__ == "__main__":
    unittest.main()
