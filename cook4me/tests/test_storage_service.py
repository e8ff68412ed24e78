# cook4me/tests/test_storage_service.py
import base64

import pytest

from cook4me.services.errors import PersistenceError, ValidationError
from cook4me.services.storage_service import (
    ProfilePictureStorage,
    profile_picture_path,
    validate_image,
)
from cook4me.services.user_service import USERS_TABLE, UserService

PNG = b"\x89PNG\r\n\x1a\nfake"


def test_validate_image_limits():
    validate_image(1024, "image/png")
    with pytest.raises(ValidationError) as exc_info:
        validate_image(5 * 1024 * 1024 + 1, "image/png")
    assert exc_info.value.status_code == 413
    with pytest.raises(ValidationError) as exc_info:
        validate_image(10, "application/pdf")
    assert exc_info.value.status_code == 415
    with pytest.raises(ValidationError):
        validate_image(0, "image/png")


def test_profile_picture_path_is_sanitized():
    path = profile_picture_path("u1", "my photo (1).png")
    prefix, uid, name = path.split("/")
    assert (prefix, uid) == ("profile-pictures", "u1")
    ts, _, filename = name.partition("_")
    assert ts.isdigit()
    assert filename == "my_photo_1_.png"


def test_path_from_url(fake_db):
    storage = ProfilePictureStorage(fake_db, bucket="avatars")
    url = "https://demo.supabase.co/storage/v1/object/public/avatars/profile-pictures/u1/1_a%20b.png?t=1"
    assert storage.path_from_url(url) == "profile-pictures/u1/1_a b.png"
    assert storage.path_from_url("https://example.com/pic.png") is None


@pytest.mark.asyncio
async def test_upload_and_list(fake_db):
    storage = ProfilePictureStorage(fake_db, bucket="avatars")
    url = await storage.upload_file("profile-pictures/u1/a.png", PNG, "image/png")
    assert url.endswith("/object/public/avatars/profile-pictures/u1/a.png")
    assert fake_db.storage.objects["profile-pictures/u1/a.png"] == (PNG, "image/png")
    assert await storage.list_files("profile-pictures/u1") == [{"name": "a.png"}]


@pytest.mark.asyncio
async def test_upload_base64_accepts_data_url(fake_db):
    storage = ProfilePictureStorage(fake_db, bucket="avatars")
    b64 = "data:image/png;base64," + base64.b64encode(PNG).decode()
    await storage.upload_base64("p/u1.png", b64, "image/png")
    assert fake_db.storage.objects["p/u1.png"][0] == PNG
    with pytest.raises(ValidationError):
        await storage.upload_base64("p/u2.png", "not base64!!", "image/png")


@pytest.mark.asyncio
async def test_replace_profile_picture(fake_db):
    users = UserService(fake_db)
    await users.create_user_profile("u1", "a@example.com", "alice")
    storage = ProfilePictureStorage(fake_db, bucket="avatars", user_service=users)

    first = await storage.replace_profile_picture("u1", "one.png", PNG, "image/png")
    second = await storage.replace_profile_picture(
        "u1", "two.png", PNG, "image/png", old_url=first
    )

    assert list(fake_db.storage.objects) == [storage.path_from_url(second)]
    assert fake_db.tables[USERS_TABLE][0]["profile_picture_url"] == second


@pytest.mark.asyncio
async def test_replace_survives_failed_cleanup(fake_db):
    users = UserService(fake_db)
    await users.create_user_profile("u1", "a@example.com", "alice")
    storage = ProfilePictureStorage(fake_db, bucket="avatars", user_service=users)
    first = await storage.replace_profile_picture("u1", "one.png", PNG, "image/png")

    fake_db.storage.fail_remove = True
    second = await storage.replace_profile_picture(
        "u1", "two.png", PNG, "image/png", old_url=first
    )
    assert fake_db.tables[USERS_TABLE][0]["profile_picture_url"] == second
    assert len(fake_db.storage.objects) == 2


@pytest.mark.asyncio
async def test_rejected_upload_writes_nothing(fake_db):
    storage = ProfilePictureStorage(fake_db, bucket="avatars", user_service=UserService(fake_db))
    with pytest.raises(ValidationError):
        await storage.replace_profile_picture("u1", "doc.pdf", b"%PDF", "application/pdf")
    fake_db.storage.fail_upload = True
    with pytest.raises(PersistenceError):
        await storage.replace_profile_picture("u1", "a.png", PNG, "image/png")
    assert fake_db.storage.objects == {}


@pytest.mark.asyncio
async def test_old_picture_kept_when_profile_update_fails(fake_db):
    users = UserService(fake_db)
    await users.create_user_profile("u1", "a@example.com", "alice")
    storage = ProfilePictureStorage(fake_db, bucket="avatars", user_service=users)
    first = await storage.replace_profile_picture("u1", "a.png", PNG, "image/png")
    old_path = storage.path_from_url(first)

    fake_db.fail = True
    with pytest.raises(PersistenceError):
        await storage.replace_profile_picture("u1", "b.png", PNG, "image/png", old_url=first)
    fake_db.fail = False

    assert list(fake_db.storage.objects) == [old_path]
    assert fake_db.tables[USERS_TABLE][0]["profile_picture_url"] == first
