import io
import unittest

from PIL import Image

from portfolio.storage import InMemoryStorageBackend, StorageChain
from portfolio.uploads import (
    MAX_UPLOAD_BYTES,
    UploadPipeline,
    UploadValidationError,
    describe,
    generate_unique_file_name,
    read_dimensions,
    validate_upload,
)
from shared.types import StorageTag


def jpeg_bytes(width=64, height=48) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "gray").save(buf, format="JPEG")
    return buf.getvalue()


class ValidateUploadTests(unittest.TestCase):
    def test_allowed_types(self):
        for content_type in ("image/jpeg", "image/jpg", "image/png", "image/webp", "IMAGE/PNG"):
            validate_upload(content_type, 10)

    def test_rejects_type(self):
        with self.assertRaises(UploadValidationError) as ctx:
            validate_upload("image/gif", 10)
        self.assertEqual(ctx.exception.status_code, 400)
        with self.assertRaises(UploadValidationError):
            validate_upload(None, 10)

    def test_rejects_size(self):
        validate_upload("image/png", 100, max_bytes=100)
        with self.assertRaises(UploadValidationError) as ctx:
            validate_upload("image/png", 101, max_bytes=100)
        self.assertEqual(ctx.exception.status_code, 413)


class FileNameTests(unittest.TestCase):
    def test_sanitizes_and_keeps_extension(self):
        name = generate_unique_file_name("My Photo (1).JPG", now_ms=1700000000000)
        self.assertTrue(name.startswith("my-photo--1--1700000000000-"))
        self.assertTrue(name.endswith(".JPG"))

    def test_unique_within_same_millisecond(self):
        names = {generate_unique_file_name("a.png", now_ms=1) for _ in range(50)}
        self.assertEqual(len(names), 50)

    def test_strips_directories(self):
        name = generate_unique_file_name("../../etc/passwd.png", now_ms=1)
        self.assertNotIn("/", name)
        self.assertTrue(name.startswith("passwd-1-"))


class DimensionTests(unittest.TestCase):
    def test_reads_size(self):
        self.assertEqual(read_dimensions(jpeg_bytes(64, 48)), (64, 48))

    def test_rejects_garbage(self):
        with self.assertRaises(UploadValidationError):
            read_dimensions(b"definitely not an image")

    def test_rejects_decompression_bomb(self):
        # Compresses to a few dozen KB but declares 400 megapixels.
        buf = io.BytesIO()
        Image.new("1", (20000, 20000)).save(buf, format="PNG")
        data = buf.getvalue()
        self.assertLess(len(data), MAX_UPLOAD_BYTES)

        with self.assertRaises(UploadValidationError) as ctx:
            read_dimensions(data)
        self.assertEqual(ctx.exception.status_code, 400)


class UploadPipelineTests(unittest.TestCase):
    def test_store(self):
        backend = InMemoryStorageBackend(tag=StorageTag.VERCEL_BLOB)
        pipeline = UploadPipeline(StorageChain([backend]))
        result = pipeline.store(jpeg_bytes(), "Kitchen.jpg", "image/jpeg", "interiors")

        self.assertEqual(result.storage, StorageTag.VERCEL_BLOB)
        self.assertEqual((result.width, result.height), (64, 48))
        self.assertTrue(result.file_name.startswith("kitchen-"))
        self.assertIn(f"images/interiors/{result.file_name}", backend.stored_objects)

    def test_oversized_never_reaches_storage(self):
        backend = InMemoryStorageBackend()
        pipeline = UploadPipeline(StorageChain([backend]), max_bytes=10)
        with self.assertRaises(UploadValidationError):
            pipeline.store(jpeg_bytes(), "a.jpg", "image/jpeg", "interiors")
        self.assertEqual(backend.stored_objects, {})

    def test_describe(self):
        chain = StorageChain(
            [
                InMemoryStorageBackend(tag=StorageTag.VERCEL_BLOB, configured=False),
                InMemoryStorageBackend(tag=StorageTag.FIREBASE),
            ]
        )
        status = describe(chain)
        self.assertEqual(status["active"], "firebase")
        self.assertEqual(status["configured"], ["firebase"])

        empty = describe(StorageChain([]))
        self.assertIsNone(empty["active"])
        self.assertEqual(empty["message"], "No storage backend is configured")


if __name__ == "__main__":
    unittest.main()
