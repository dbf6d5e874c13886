import unittest

from portfolio import site_config
from portfolio.db import InMemoryDbClient
from portfolio.site_config import DEFAULT_SITE_CONFIG, deep_merge


class DeepMergeTests(unittest.TestCase):
    def test_nested_merge_does_not_mutate(self):
        base = {"hero": {"title": "A", "subtitle": "B"}, "keywords": ["x"]}
        merged = deep_merge(base, {"hero": {"title": "C"}, "keywords": ["y", "z"]})
        self.assertEqual(merged, {"hero": {"title": "C", "subtitle": "B"}, "keywords": ["y", "z"]})
        self.assertEqual(base["hero"]["title"], "A")

    def test_none_keeps_base_value(self):
        self.assertEqual(deep_merge({"a": 1}, {"a": None, "b": None}), {"a": 1, "b": None})


class SiteConfigTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_defaults_created_once(self):
        config = site_config.get_site_config(self.db)
        self.assertEqual(config["hero"]["title"], DEFAULT_SITE_CONFIG["hero"]["title"])
        stored = self.db.get_document(site_config.SITE_CONFIG_KEY)
        self.assertIn("updated_at", stored)

    def test_missing_sections_filled_from_defaults(self):
        self.db.save_document(site_config.SITE_CONFIG_KEY, {"hero": {"title": "Old"}})
        config = site_config.get_site_config(self.db)
        self.assertEqual(config["hero"]["title"], "Old")
        self.assertEqual(config["theme"]["fonts"]["body_font"], "Inter")

    def test_update_preserves_other_fields(self):
        site_config.get_site_config(self.db)
        config = site_config.update_site_config(
            self.db, {"contact": {"social_links": {"facebook": "https://facebook.com/me"}}}
        )
        links = config["contact"]["social_links"]
        self.assertEqual(links["facebook"], "https://facebook.com/me")
        self.assertEqual(links["instagram"], "https://instagram.com/photographer")

    def test_reserved_keys_are_dropped(self):
        site_config.update_site_config(self.db, {"id": "x", "_id": "y", "footer": {"tagline": "t"}})
        stored = self.db.get_document(site_config.SITE_CONFIG_KEY)
        self.assertNotIn("_id", stored)
        self.assertNotIn("id", stored)
        self.assertEqual(stored["footer"]["tagline"], "t")


class ProfileTests(unittest.TestCase):
    def test_profile_update(self):
        db = InMemoryDbClient()
        self.assertEqual(site_config.get_profile(db)["name"], "Professional Photographer")
        profile = site_config.update_profile(db, {"name": "Jane Doe"})
        self.assertEqual(profile["name"], "Jane Doe")
        self.assertEqual(site_config.get_profile(db)["location"], "New York, NY")


if __name__ == "__main__":
    unittest.main()
