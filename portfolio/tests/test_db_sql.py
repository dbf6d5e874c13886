import unittest
from datetime import datetime, timezone

from portfolio.db import CategoryRecord, ContactRecord, ImageRecord, SqlDbClient, UserRecord
from shared.types import ContactStatus, UserRole


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_create_and_get_category(self):
        category = self.db.create_category(CategoryRecord(name="Interiors", slug="interiors"))
        self.assertTrue(category.id)
        self.assertEqual(self.db.get_category(category.id).slug, "interiors")
        self.assertEqual(self.db.get_category_by_slug("interiors").id, category.id)
        self.assertIsNone(self.db.get_category_by_slug("missing"))
        self.assertEqual(self.db.count_categories(), 1)

    def test_categories_sorted_by_order(self):
        self.db.create_category(CategoryRecord(name="B", slug="b", order=2))
        self.db.create_category(CategoryRecord(name="A", slug="a", order=1))
        self.assertEqual([c.slug for c in self.db.list_categories()], ["a", "b"])

    def test_update_category_ignores_unknown_fields(self):
        category = self.db.create_category(CategoryRecord(name="Travel", slug="travel"))
        updated = self.db.update_category(category.id, {"name": "Trips", "id": "other"})
        self.assertEqual(updated.id, category.id)
        self.assertEqual(updated.name, "Trips")
        self.assertIsNone(self.db.update_category("missing", {"name": "x"}))

    def test_image_category_lists_roundtrip_and_filter(self):
        self.db.create_image(
            ImageRecord(
                title="Loft",
                url="https://cdn.example.com/loft.jpg",
                category_ids=["c1", "c2"],
                category_slugs=["interiors", "exteriors"],
            )
        )
        self.db.create_image(
            ImageRecord(
                title="Bridge",
                url="https://cdn.example.com/bridge.jpg",
                category_ids=["c3"],
                category_slugs=["travel"],
                order=1,
            )
        )
        self.assertEqual([i.title for i in self.db.list_images("exteriors")], ["Loft"])
        self.assertEqual([i.title for i in self.db.list_images()], ["Loft", "Bridge"])
        self.assertEqual(self.db.list_images("travel")[0].category_ids, ["c3"])

    def test_create_can_keep_supplied_timestamps(self):
        created = datetime(2020, 1, 2, tzinfo=timezone.utc)
        image = self.db.create_image(
            ImageRecord(title="Old", url="old", created_at=created, updated_at=created),
            preserve_timestamps=True,
        )
        category = self.db.create_category(
            CategoryRecord(name="Old", slug="old", created_at=created, updated_at=created),
            preserve_timestamps=True,
        )
        fresh = self.db.create_image(
            ImageRecord(title="New", url="new", created_at=created, updated_at=created)
        )
        # SQLite drops the offset, so compare wall-clock values.
        stored = self.db.get_image(image.id).created_at.replace(tzinfo=None)
        self.assertEqual(stored, created.replace(tzinfo=None))
        stored = self.db.get_category(category.id).created_at.replace(tzinfo=None)
        self.assertEqual(stored, created.replace(tzinfo=None))
        self.assertGreater(self.db.get_image(fresh.id).created_at.year, 2020)

    def test_featured_images_limit(self):
        for order in range(3):
            self.db.create_image(
                ImageRecord(title=f"f{order}", url=f"u{order}", featured=True, order=order)
            )
        self.db.create_image(ImageRecord(title="plain", url="plain", order=-1))
        self.assertEqual([i.title for i in self.db.list_featured_images(2)], ["f0", "f1"])

    def test_update_and_delete_image(self):
        image = self.db.create_image(ImageRecord(title="Loft", url="u"))
        updated = self.db.update_image(image.id, {"featured": True, "category_slugs": ["a"]})
        self.assertTrue(updated.featured)
        self.assertEqual(updated.category_slugs, ["a"])
        self.assertTrue(self.db.delete_image(image.id))
        self.assertFalse(self.db.delete_image(image.id))
        self.assertIsNone(self.db.get_image(image.id))

    def test_document_roundtrip(self):
        self.assertIsNone(self.db.get_document("site_config"))
        self.db.save_document("site_config", {"hero": {"title": "A"}})
        self.db.save_document("site_config", {"hero": {"title": "B"}})
        self.assertEqual(self.db.get_document("site_config"), {"hero": {"title": "B"}})

    def test_contacts(self):
        first = self.db.create_contact(
            ContactRecord(name="A", email="a@example.com", subject="s", message="m")
        )
        second = self.db.create_contact(
            ContactRecord(name="B", email="b@example.com", subject="s", message="m")
        )
        self.assertEqual([c.id for c in self.db.list_contacts()], [second.id, first.id])

        updated = self.db.update_contact_status(first.id, ContactStatus.READ)
        self.assertEqual(updated.status, ContactStatus.READ)
        self.assertEqual(self.db.get_contact(first.id).status, ContactStatus.READ)
        self.assertTrue(self.db.delete_contact(first.id))
        self.assertIsNone(self.db.get_contact(first.id))

    def test_users(self):
        self.db.create_user(
            UserRecord(email="admin@example.com", password_hash="x", name="Admin", role=UserRole.ADMIN)
        )
        user = self.db.get_user_by_email("admin@example.com")
        self.assertEqual(user.role, UserRole.ADMIN)
        self.assertNotIn("password_hash", user.as_dict())
        self.assertEqual(self.db.count_users(), 1)


if __name__ == "__main__":
    unittest.main()
