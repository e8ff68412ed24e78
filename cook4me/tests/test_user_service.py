# cook4me/tests/test_user_service.py
import pytest

from cook4me.models.user import UserProfileUpdate
from cook4me.services.errors import ValidationError
from cook4me.services.user_service import USERS_TABLE, UserService


@pytest.mark.asyncio
async def test_create_and_get_profile(fake_db):
    svc = UserService(fake_db)
    res = await svc.create_user_profile("u1", "alice@example.com", "  alice  ")
    assert res["ok"] is True
    profile = res["data"]
    assert profile.username == "alice"
    assert profile.profile_picture_url is None
    assert profile.created_at == profile.updated_at

    fetched = await svc.get_user_profile("u1")
    assert fetched["ok"] and fetched["data"].email == "alice@example.com"
    assert (await svc.user_profile_exists("u1"))["data"] is True
    assert (await svc.user_profile_exists("nobody"))["data"] is False


@pytest.mark.asyncio
async def test_create_is_upsert_by_user_id(fake_db):
    svc = UserService(fake_db)
    await svc.create_user_profile("u1", "a@example.com", "first")
    await svc.create_user_profile("u1", "a@example.com", "second")
    rows = fake_db.tables[USERS_TABLE]
    assert len(rows) == 1
    assert rows[0]["username"] == "second"


@pytest.mark.asyncio
async def test_update_trims_username_and_bumps_updated_at(fake_db):
    svc = UserService(fake_db)
    await svc.create_user_profile("u1", "a@example.com", "alice")
    fake_db.tables[USERS_TABLE][0]["updated_at"] = "2024-01-01T00:00:00+00:00"

    res = await svc.update_user_profile("u1", UserProfileUpdate(username=" Chef Alice "))
    assert res["ok"]
    assert res["data"].username == "Chef Alice"
    assert res["data"].updated_at.year > 2024


@pytest.mark.asyncio
async def test_blank_username_is_rejected(fake_db):
    svc = UserService(fake_db)
    await svc.create_user_profile("u1", "a@example.com", "alice")
    with pytest.raises(ValidationError):
        await svc.update_user_profile("u1", UserProfileUpdate(username="   "))
    with pytest.raises(ValidationError):
        await svc.create_user_profile("u2", "b@example.com", "")
    assert fake_db.tables[USERS_TABLE][0]["username"] == "alice"


@pytest.mark.asyncio
async def test_update_unknown_user_returns_none(fake_db):
    svc = UserService(fake_db)
    res = await svc.update_user_profile("ghost", UserProfileUpdate(username="boo"))
    assert res["ok"] and res["data"] is None


@pytest.mark.asyncio
async def test_recreating_profile_keeps_created_at(fake_db):
    svc = UserService(fake_db)
    await svc.create_user_profile("u1", "a@example.com", "alice")
    fake_db.tables[USERS_TABLE][0]["created_at"] = "2024-01-01T00:00:00+00:00"

    res = await svc.create_user_profile("u1", "a@example.com", "alice2")
    assert res["ok"]
    assert res["data"].username == "alice2"
    assert res["data"].created_at.year == 2024
    assert res["data"].updated_at.year > 2024
