import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from portfolio.config import Settings
from portfolio.storage import (
    FirebaseStorageBackend,
    InMemoryStorageBackend,
    LocalStorageBackend,
    StorageBackendError,
    StorageChain,
    StorageUnavailableError,
    VercelBlobBackend,
    build_storage_chain,
    object_path,
)
from shared.types import StorageTag


class StorageChainTests(unittest.TestCase):
    def test_first_configured_backend_wins(self):
        vercel = InMemoryStorageBackend(tag=StorageTag.VERCEL_BLOB, configured=False)
        firebase = InMemoryStorageBackend(tag=StorageTag.FIREBASE)
        local = InMemoryStorageBackend(tag=StorageTag.LOCAL)
        chain = StorageChain([vercel, firebase, local])

        stored = chain.upload(b"data", "a.jpg", "interiors", "image/jpeg")
        self.assertEqual(stored.storage, StorageTag.FIREBASE)
        self.assertIn("images/interiors/a.jpg", firebase.stored_objects)
        self.assertEqual(vercel.stored_objects, {})
        self.assertEqual(local.stored_objects, {})
        self.assertEqual(chain.configured_tags(), [StorageTag.FIREBASE, StorageTag.LOCAL])

    def test_falls_back_after_failure(self):
        vercel = InMemoryStorageBackend(tag=StorageTag.VERCEL_BLOB, fail=True)
        firebase = InMemoryStorageBackend(tag=StorageTag.FIREBASE)
        stored = StorageChain([vercel, firebase]).upload(b"x", "a.png", "travel", "image/png")
        self.assertEqual(stored.storage, StorageTag.FIREBASE)
        self.assertEqual(stored.url, "https://example.test/storage/images/travel/a.png")

    def test_each_backend_is_tried_once(self):
        backends = []
        for tag in (StorageTag.VERCEL_BLOB, StorageTag.FIREBASE, StorageTag.LOCAL):
            backend = MagicMock()
            backend.tag = tag
            backend.is_configured.return_value = True
            backend.upload.side_effect = StorageBackendError(f"{tag} down")
            backends.append(backend)

        with self.assertRaises(StorageUnavailableError) as ctx:
            StorageChain(backends).upload(b"x", "a.png", "travel", "image/png")
        self.assertEqual(ctx.exception.attempted, ["vercel-blob", "firebase", "local"])
        self.assertIn("local down", str(ctx.exception))
        for backend in backends:
            backend.upload.assert_called_once()

    def test_no_configured_backend(self):
        chain = StorageChain([InMemoryStorageBackend(configured=False)])
        with self.assertRaises(StorageUnavailableError) as ctx:
            chain.upload(b"x", "a.png", "travel", "image/png")
        self.assertEqual(ctx.exception.attempted, [])

    def test_object_path_rejects_traversal(self):
        self.assertEqual(object_path("a.jpg", "interiors"), "images/interiors/a.jpg")
        with self.assertRaises(StorageBackendError):
            object_path("a.jpg", "../etc")


class BuildStorageChainTests(unittest.TestCase):
    def test_priority_order(self):
        settings = Settings(
            blob_read_write_token="token",
            firebase_api_key="key",
            firebase_project_id="project",
            firebase_storage_bucket="bucket",
        )
        chain = build_storage_chain(settings)
        self.assertEqual(
            [b.tag for b in chain.backends],
            [StorageTag.VERCEL_BLOB, StorageTag.FIREBASE, StorageTag.LOCAL],
        )
        self.assertEqual(
            chain.configured_tags(),
            [StorageTag.VERCEL_BLOB, StorageTag.FIREBASE, StorageTag.LOCAL],
        )

    def test_partial_firebase_config_is_not_configured(self):
        settings = Settings(
            blob_read_write_token=None,
            firebase_api_key="key",
            firebase_project_id=None,
            firebase_storage_bucket="bucket",
        )
        self.assertEqual(build_storage_chain(settings).configured_tags(), [StorageTag.LOCAL])

    def test_in_memory(self):
        chain = build_storage_chain(Settings(use_in_memory_backends=True))
        self.assertEqual(len(chain.backends), 1)
        self.assertIsInstance(chain.backends[0], InMemoryStorageBackend)


class LocalStorageBackendTests(unittest.TestCase):
    def test_writes_under_category(self):
        with tempfile.TemporaryDirectory() as tmp:
            backend = LocalStorageBackend(root_dir=tmp)
            url = backend.upload(b"bytes", "a.jpg", "interiors", "image/jpeg")
            self.assertEqual(url, "/uploads/interiors/a.jpg")
            self.assertEqual((Path(tmp) / "interiors" / "a.jpg").read_bytes(), b"bytes")

    def test_refuses_on_serverless(self):
        with tempfile.TemporaryDirectory() as tmp:
            backend = LocalStorageBackend(root_dir=tmp, serverless=True)
            with self.assertRaises(StorageBackendError) as ctx:
                backend.upload(b"bytes", "a.jpg", "interiors", "image/jpeg")
            self.assertIn("BLOB_READ_WRITE_TOKEN", str(ctx.exception))
            self.assertEqual(list(Path(tmp).iterdir()), [])


class VercelBlobBackendTests(unittest.TestCase):
    @patch("portfolio.storage.requests.put")
    def test_upload(self, mock_put):
        mock_put.return_value = MagicMock(ok=True, status_code=200)
        mock_put.return_value.json.return_value = {"url": "https://blob.example.com/a.jpg"}

        backend = VercelBlobBackend(token="secret")
        url = backend.upload(b"bytes", "a.jpg", "interiors", "image/jpeg")

        self.assertEqual(url, "https://blob.example.com/a.jpg")
        args, kwargs = mock_put.call_args
        self.assertEqual(args[0], "https://blob.vercel-storage.com/images/interiors/a.jpg")
        self.assertEqual(kwargs["headers"]["authorization"], "Bearer secret")
        self.assertEqual(kwargs["headers"]["x-content-type"], "image/jpeg")
        self.assertEqual(kwargs["data"], b"bytes")

    @patch("portfolio.storage.requests.put")
    def test_error_response_raises(self, mock_put):
        mock_put.return_value = MagicMock(ok=False, status_code=403, text="forbidden")
        with self.assertRaises(StorageBackendError):
            VercelBlobBackend(token="secret").upload(b"x", "a.jpg", "interiors", "image/jpeg")

    def test_configured_only_with_token(self):
        self.assertFalse(VercelBlobBackend(token=None).is_configured())
        self.assertTrue(VercelBlobBackend(token="t").is_configured())


class FirebaseStorageBackendTests(unittest.TestCase):
    @patch("portfolio.storage.firebase_storage")
    @patch("portfolio.storage.credentials")
    @patch("portfolio.storage.firebase_admin")
    def test_upload_makes_blob_public(self, mock_admin, mock_credentials, mock_storage):
        mock_admin.get_app.side_effect = ValueError("no app")
        blob = MagicMock(public_url="https://storage.googleapis.com/bucket/images/travel/a.png")
        mock_storage.bucket.return_value.blob.return_value = blob

        backend = FirebaseStorageBackend(api_key="k", project_id="p", bucket="bucket")
        url = backend.upload(b"png", "a.png", "travel", "image/png")

        self.assertEqual(url, blob.public_url)
        mock_admin.initialize_app.assert_called_once()
        mock_credentials.ApplicationDefault.assert_called_once()
        mock_storage.bucket.return_value.blob.assert_called_once_with("images/travel/a.png")
        blob.upload_from_string.assert_called_once_with(b"png", content_type="image/png")
        blob.make_public.assert_called_once()


if __name__ == "__main__":
    unittest.main()
