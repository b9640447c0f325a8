"""
Tests for ClientService and UserService: client aggregates, service
definition ids, user profile updates and the cascading account delete.
"""
import copy
import unittest
import uuid
from datetime import date

from sqlmodel import select

from leadcrm.models import AdSpend, Client, Lead, MwsMonthlyRevenue, Note, Notification, User
from leadcrm.services.client_service import ClientService, assign_service_ids
from leadcrm.services.user_service import UserService
from support import DatabaseTestCase

SERVICES = [
    {
        "name": "Roof repair",
        "fields": [
            {"id": "new_1", "name": "name", "label": "Full name", "kind": "text", "required": True},
            {"name": "phone", "label": "Phone", "kind": "phone"},
        ],
    }
]


class TestAssignServiceIds(unittest.TestCase):
    def test_missing_and_temporary_ids_are_generated(self):
        services = assign_service_ids(SERVICES)

        self.assertTrue(services[0]["id"].startswith("service_"))
        field_ids = [f["id"] for f in services[0]["fields"]]
        self.assertTrue(all(fid.startswith("field_") for fid in field_ids))
        self.assertEqual(len(set(field_ids)), 2)

    def test_existing_ids_are_kept_unless_regenerated(self):
        services = [{"id": "service_abc", "name": "S", "fields": [{"id": "field_xyz", "name": "f"}]}]
        self.assertEqual(assign_service_ids(services)[0]["id"], "service_abc")
        self.assertEqual(assign_service_ids(services)[0]["fields"][0]["id"], "field_xyz")
        self.assertNotEqual(assign_service_ids(services, regenerate=True)[0]["id"], "service_abc")

    def test_input_is_not_mutated(self):
        assign_service_ids(SERVICES)
        self.assertNotIn("id", SERVICES[0])


class TestClientService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ClientService(self.session)
        self.user = self.make_user("acme")

    def test_create_client(self):
        client = self.service.create_client("Acme", self.user.id, SERVICES, mws_fixed_fee=100, mws_profit_percentage=20)

        self.assertEqual(client["name"], "Acme")
        self.assertEqual(client["leads"], [])
        self.assertEqual(client["ad_spends"], [])
        self.assertEqual(client["mws_fixed_fee"], 100)
        self.assertTrue(client["services"][0]["id"].startswith("service_"))

    def test_one_client_per_user(self):
        self.service.create_client("Acme", self.user.id)
        with self.assertRaises(ValueError) as ctx:
            self.service.create_client("Acme again", self.user.id)
        self.assertEqual(str(ctx.exception), "This user is already associated with a client.")

    def test_create_client_for_unknown_user(self):
        with self.assertRaises(FileNotFoundError):
            self.service.create_client("Ghost", uuid.uuid4())

    def test_aggregate_carries_leads_and_ad_spends(self):
        client = self.make_client(user=self.user)
        self.make_lead(client)
        self.make_ad_spend(client, 75, date(2024, 5, 1))

        loaded = self.service.get_client_by_user_id(self.user.id)
        self.assertEqual(len(loaded["leads"]), 1)
        self.assertEqual(loaded["ad_spends"][0]["amount"], 75)
        self.assertIsNone(self.service.get_client_by_user_id(uuid.uuid4()))

    def test_update_keeps_service_ids(self):
        created = self.service.create_client("Acme", self.user.id, SERVICES)
        services = copy.deepcopy(created["services"])
        services[0]["fields"].append({"id": "new_3", "name": "zip", "kind": "text"})

        updated = self.service.update_client(created["id"], {"services": services, "mws_profit_percentage": 15})

        self.assertEqual(updated["services"][0]["id"], created["services"][0]["id"])
        self.assertEqual(len(updated["services"][0]["fields"]), 3)
        self.assertTrue(updated["services"][0]["fields"][2]["id"].startswith("field_"))
        self.assertEqual(updated["mws_profit_percentage"], 15)

    def test_available_users(self):
        free = self.make_user("free")
        self.make_user("boss", role="admin")
        self.make_client(user=self.user)

        self.assertEqual([u.id for u in self.service.get_available_users()], [free.id])

    def test_delete_client_removes_account_and_data(self):
        client = self.make_client(user=self.user)
        lead = self.make_lead(client)
        self.session.add(Note(lead_id=lead.id, content="n"))
        self.session.add(Notification(user_id=self.user.id, message="hi"))
        self.session.add(MwsMonthlyRevenue(client_id=client.id, month=date(2024, 5, 1), revenue_amount=10))
        self.make_ad_spend(client, 10, date(2024, 5, 1))
        survivor = self.make_client(name="Other")
        self.make_lead(survivor)

        self.service.delete_client(client.id)

        self.assertIsNone(self.session.get(User, self.user.id))
        self.assertEqual([c.id for c in self.session.exec(select(Client)).all()], [survivor.id])
        self.assertEqual([lead.client_id for lead in self.session.exec(select(Lead)).all()], [survivor.id])
        for model in (Note, Notification, MwsMonthlyRevenue, AdSpend):
            self.assertEqual(self.session.exec(select(model)).all(), [], model.__name__)

    def test_delete_unknown_client(self):
        with self.assertRaises(FileNotFoundError):
            self.service.delete_client(uuid.uuid4())


class TestUserService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = UserService(self.session)

    def test_update_user_rejects_taken_username(self):
        self.make_user("taken")
        user = self.make_user("mine")
        with self.assertRaises(ValueError) as ctx:
            self.service.update_user(user.id, {"username": "taken"})
        self.assertEqual(str(ctx.exception), "Username already exists.")

    def test_update_user_profile_fields_only(self):
        user = self.make_user("mine")
        updated = self.service.update_user(user.id, {"phone": "+39 333 1234567", "hashed_password": "x"})
        self.assertEqual(updated.phone, "+39 333 1234567")
        self.assertEqual(updated.hashed_password, "not-a-real-hash")

    def test_update_status(self):
        user = self.make_user("mine")
        self.assertTrue(self.service.update_user_status(user.id, "suspended").is_suspended)
        with self.assertRaises(ValueError):
            self.service.update_user_status(user.id, "banned")

    def test_delete_user_without_client(self):
        user = self.make_user("lonely")
        self.service.delete_user_and_data(user.id)
        self.assertIsNone(self.session.get(User, user.id))
        with self.assertRaises(FileNotFoundError):
            self.service.delete_user_and_data(user.id)


if __name__ == "__main__":
    unittest.main()
