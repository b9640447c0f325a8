"""
Tests for NotificationService: sending batches, listing sent batches, and
editing or deleting a batch (both batch-id and legacy minute grouping).
"""
import unittest
import uuid
from datetime import datetime

from sqlmodel import select

from leadcrm.models import Notification
from leadcrm.services.notification_service import NotificationService, minute_of
from support import DatabaseTestCase


class TestNotificationService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = NotificationService(self.session)
        self.alice = self.make_user("alice")
        self.bob = self.make_user("bob")
        self.carol = self.make_user("carol")

    def all_rows(self):
        return list(self.session.exec(select(Notification)).all())

    def add_legacy(self, user, created_at, title="Maintenance", message="Down tonight"):
        row = Notification(user_id=user.id, title=title, message=message, created_at=created_at)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    # --- Sending ---
    def test_send_writes_one_row_per_recipient_with_shared_batch(self):
        batch = self.service.send_custom_notification(
            [self.alice.id, self.bob.id, self.alice.id], " Hello ", "New feature"
        )

        rows = self.all_rows()
        self.assertEqual(len(rows), 2)
        self.assertEqual({row.batch_id for row in rows}, {batch["batch_id"]})
        self.assertEqual(len({row.created_at for row in rows}), 1)
        self.assertEqual(rows[0].title, "Hello")
        self.assertEqual(batch["recipient_count"], 2)

    def test_sent_at_is_stored_as_naive_utc(self):
        before = datetime.utcnow()
        self.service.send_custom_notification([self.alice.id], "Hello", "New feature")
        self.session.expire_all()

        row = self.all_rows()[0]
        self.assertIsNone(row.created_at.tzinfo)
        self.assertGreaterEqual(row.created_at, before.replace(microsecond=0))

    def test_send_requires_recipients_title_and_message(self):
        for user_ids, title, message in (([], "t", "m"), ([self.alice.id], "", "m"), ([self.alice.id], "t", "  ")):
            with self.assertRaises(ValueError) as ctx:
                self.service.send_custom_notification(user_ids, title, message)
            self.assertEqual(str(ctx.exception), "User IDs, title, and message are required.")
        self.assertEqual(self.all_rows(), [])

    def test_separate_sends_stay_separate_batches(self):
        self.service.send_custom_notification([self.alice.id], "Same", "Text")
        self.service.send_custom_notification([self.bob.id], "Same", "Text")
        self.assertEqual(len(self.service.get_sent_notifications()), 2)

    def test_lead_notifications_are_not_listed_as_sent(self):
        self.session.add(Notification(user_id=self.alice.id, lead_id=uuid.uuid4(), title="New lead", message="x"))
        self.session.commit()
        self.assertEqual(self.service.get_sent_notifications(), [])

    # --- Legacy grouping by (title, message, minute) ---
    def test_legacy_rows_in_same_minute_collapse(self):
        self.add_legacy(self.alice, datetime(2024, 1, 1, 10, 0, 5))
        self.add_legacy(self.bob, datetime(2024, 1, 1, 10, 0, 40))
        self.add_legacy(self.carol, datetime(2024, 1, 1, 10, 1, 10))

        batches = self.service.get_sent_notifications()
        self.assertEqual(len(batches), 2)
        by_count = sorted(batch["recipient_count"] for batch in batches)
        self.assertEqual(by_count, [1, 2])

    def test_legacy_update_only_touches_its_minute(self):
        first = self.add_legacy(self.alice, datetime(2024, 1, 1, 10, 0, 5))
        self.add_legacy(self.bob, datetime(2024, 1, 1, 10, 0, 40))
        later = self.add_legacy(self.carol, datetime(2024, 1, 1, 10, 1, 10))

        batch = self.service.update_sent_notification(first.id, "Maintenance", "Moved to tomorrow")

        self.assertEqual(sorted(batch["recipient_ids"]), sorted([self.alice.id, self.bob.id]))
        rows = self.all_rows()
        self.assertEqual(len(rows), 3)
        edited = [row for row in rows if row.message == "Moved to tomorrow"]
        self.assertEqual({row.user_id for row in edited}, {self.alice.id, self.bob.id})
        self.assertIsNotNone(edited[0].batch_id)
        untouched = self.session.get(Notification, later.id)
        self.assertEqual(untouched.message, "Down tonight")

    def test_legacy_delete_only_touches_its_minute(self):
        first = self.add_legacy(self.alice, datetime(2024, 1, 1, 10, 0, 5))
        self.add_legacy(self.bob, datetime(2024, 1, 1, 10, 0, 59))
        self.add_legacy(self.carol, datetime(2024, 1, 1, 10, 1, 0))

        self.assertEqual(self.service.delete_sent_notification(first.id), 2)
        remaining = self.all_rows()
        self.assertEqual([row.user_id for row in remaining], [self.carol.id])

    def test_minute_of(self):
        self.assertEqual(minute_of(datetime(2024, 1, 1, 10, 0, 59, 999)), datetime(2024, 1, 1, 10, 0))

    # --- Batch id grouping ---
    def test_update_batch_replaces_every_member(self):
        sent = self.service.send_custom_notification([self.alice.id, self.bob.id], "Promo", "10% off")
        self.service.send_custom_notification([self.carol.id], "Promo", "10% off")

        updated = self.service.update_sent_notification(sent["id"], "Promo", "20% off")

        self.assertNotEqual(updated["batch_id"], sent["batch_id"])
        messages = {row.user_id: row.message for row in self.all_rows()}
        self.assertEqual(messages[self.alice.id], "20% off")
        self.assertEqual(messages[self.bob.id], "20% off")
        self.assertEqual(messages[self.carol.id], "10% off")

    def test_update_requires_text(self):
        sent = self.service.send_custom_notification([self.alice.id], "Promo", "10% off")
        with self.assertRaises(ValueError):
            self.service.update_sent_notification(sent["id"], "Promo", "")

    def test_unknown_notification(self):
        with self.assertRaises(FileNotFoundError):
            self.service.delete_sent_notification(uuid.uuid4())

    # --- Inbox ---
    def test_inbox_and_read_flags(self):
        self.service.send_custom_notification([self.alice.id], "One", "first")
        self.service.send_custom_notification([self.alice.id], "Two", "second")
        self.service.send_custom_notification([self.bob.id], "Three", "third")

        inbox = self.service.get_notifications_for_user(self.alice.id)
        self.assertEqual(len(inbox), 2)
        self.assertEqual(len(self.service.get_notifications_for_user(self.alice.id, limit=1)), 1)

        self.service.mark_as_read(inbox[0].id)
        self.assertEqual(self.service.mark_all_as_read(self.alice.id), 1)
        self.assertTrue(all(n.read for n in self.service.get_notifications_for_user(self.alice.id)))
        self.assertFalse(self.service.get_notifications_for_user(self.bob.id)[0].read)


if __name__ == "__main__":
    unittest.main()
