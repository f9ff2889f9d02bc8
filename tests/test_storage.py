"""Image storage backends."""

import re

import pytest
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from nahora_delivery.core.config import Settings
from nahora_delivery.core.errors import StorageError
from nahora_delivery.services.storage import (
    CloudinaryImageStorage,
    ImageUpload,
    LocalImageStorage,
    get_image_storage,
    public_id_from_url,
)


@pytest.fixture
def cloud_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        image_backend="cloudinary",
        public_directory=str(tmp_path / "public"),
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
    )


# =============================================================================
# LOCAL
# =============================================================================

async def test_local_store_generates_unique_names(storage):
    upload = ImageUpload(content=b"data", filename="Pizza Grande.PNG", content_type="image/png")

    first = await storage.store(upload)
    second = await storage.store(upload)

    assert first != second
    assert re.fullmatch(r"/uploads/\d{13}-\d{9}\.png", first)
    assert storage.owns(first)


async def test_local_delete_makes_file_unretrievable(storage):
    locator = await storage.store(ImageUpload(content=b"data", filename="a.jpg"))
    path = storage.directory / locator.rsplit("/", 1)[-1]
    assert path.exists()

    await storage.delete(locator)

    assert not path.exists()


async def test_local_delete_of_missing_file_is_silent(storage):
    await storage.delete("/uploads/nao-existe.jpg")


async def test_local_delete_uses_only_final_path_component(storage, tmp_path):
    outside = tmp_path / "segredo.txt"
    outside.write_text("keep")

    await storage.delete("/uploads/../../segredo.txt")

    assert outside.exists()


def test_local_owns_only_upload_paths(storage):
    assert storage.owns("/uploads/1-2.jpg")
    assert not storage.owns("https://res.cloudinary.com/demo/image/upload/v1/f/a.jpg")
    assert not storage.owns("")
    assert not storage.owns(None)


async def test_local_health_check(storage):
    assert await storage.health_check() is True


# =============================================================================
# CLOUDINARY
# =============================================================================

def test_public_id_from_url():
    url = "https://res.cloudinary.com/demo/image/upload/v1718000000/nahora-delivery-uploads/img-1718-pizza.jpg"
    assert public_id_from_url(url) == "nahora-delivery-uploads/img-1718-pizza"


def test_public_id_from_url_without_folder():
    with pytest.raises(StorageError):
        public_id_from_url("https://res.cloudinary.com")


def test_cloudinary_requires_credentials(tmp_path):
    settings = Settings(_env_file=None, image_backend="cloudinary", public_directory=str(tmp_path))
    with pytest.raises(ValueError):
        CloudinaryImageStorage(settings)


async def test_cloudinary_store_uploads_into_folder_as_jpeg(cloud_settings, monkeypatch):
    calls = []

    def fake_upload(file, **options):
        calls.append((file.read(), options))
        return {
            "public_id": f"{options['folder']}/{options['public_id']}",
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/v1/{options['folder']}/{options['public_id']}.jpg",
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    storage = CloudinaryImageStorage(cloud_settings)

    url = await storage.store(ImageUpload(content=b"png-bytes", filename="calabresa.png"))

    content, options = calls[0]
    assert content == b"png-bytes"
    assert options["folder"] == "nahora-delivery-uploads"
    assert options["format"] == "jpeg"
    assert re.fullmatch(r"img-\d{13}-calabresa", options["public_id"])
    assert storage.owns(url)


async def test_cloudinary_upload_failure_is_storage_error(cloud_settings, monkeypatch):
    def failing_upload(file, **options):
        raise CloudinaryError("Invalid image file")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)
    storage = CloudinaryImageStorage(cloud_settings)

    with pytest.raises(StorageError):
        await storage.store(ImageUpload(content=b"x", filename="a.png"))


async def test_cloudinary_delete_destroys_folder_and_public_id(cloud_settings, monkeypatch):
    destroyed = []

    def fake_destroy(public_id, **options):
        destroyed.append(public_id)
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    storage = CloudinaryImageStorage(cloud_settings)

    await storage.delete("https://res.cloudinary.com/demo/image/upload/v1/nahora-delivery-uploads/img-1-pizza.jpg")

    assert destroyed == ["nahora-delivery-uploads/img-1-pizza"]


async def test_cloudinary_delete_rejected(cloud_settings, monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **options: {"result": "error"})
    storage = CloudinaryImageStorage(cloud_settings)

    with pytest.raises(StorageError):
        await storage.delete("https://res.cloudinary.com/demo/image/upload/v1/f/a.jpg")


def test_cloudinary_owns_only_cloudinary_urls(cloud_settings):
    storage = CloudinaryImageStorage(cloud_settings)

    assert storage.owns("https://res.cloudinary.com/demo/image/upload/v1/f/a.jpg")
    assert not storage.owns("/uploads/1-2.jpg")
    assert not storage.owns(None)


# =============================================================================
# FACTORY
# =============================================================================

def test_factory_selects_backend(settings, cloud_settings):
    assert isinstance(get_image_storage(settings), LocalImageStorage)
    assert isinstance(get_image_storage(cloud_settings), CloudinaryImageStorage)
