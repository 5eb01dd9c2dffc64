"""
User tests — upsert keyed by open_id, owner promotion, and resolving the
caller through the ``/auth/me`` endpoint.
"""
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError
from app.models import Role
from app.schemas import UserUpsert
from app.services import user_service


# ---------------------------------------------------------------------------
# upsert_user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upsert_creates_member(db_session: AsyncSession):
    user = await user_service.upsert_user(
        db_session, UserUpsert(open_id="new-reader", name="New Reader", login_method="github")
    )
    assert user.id is not None
    assert user.role is Role.MEMBER
    assert user.name == "New Reader"
    assert user.login_method == "github"
    assert user.last_signed_in is not None


@pytest.mark.asyncio
async def test_upsert_promotes_owner(db_session: AsyncSession):
    # OWNER_OPEN_ID is pinned to "owner-open-id" by conftest.
    user = await user_service.upsert_user(db_session, UserUpsert(open_id="owner-open-id"))
    assert user.role is Role.ADMIN


@pytest.mark.asyncio
async def test_upsert_explicit_role_wins_over_owner(db_session: AsyncSession):
    user = await user_service.upsert_user(
        db_session, UserUpsert(open_id="owner-open-id", role=Role.MEMBER)
    )
    assert user.role is Role.MEMBER


@pytest.mark.asyncio
async def test_upsert_updates_only_supplied_fields(db_session: AsyncSession):
    first = await user_service.upsert_user(
        db_session, UserUpsert(open_id="returning", name="Name", email="a@example.com")
    )
    second = await user_service.upsert_user(
        db_session, UserUpsert(open_id="returning", email="b@example.com")
    )
    assert second.id == first.id
    assert second.name == "Name"
    assert second.email == "b@example.com"


@pytest.mark.asyncio
async def test_upsert_without_fields_bumps_last_signed_in(db_session: AsyncSession):
    signed_in = datetime(2025, 1, 1, tzinfo=timezone.utc)
    await user_service.upsert_user(
        db_session, UserUpsert(open_id="sleepy", last_signed_in=signed_in)
    )
    user = await user_service.upsert_user(db_session, UserUpsert(open_id="sleepy"))
    assert user.last_signed_in.replace(tzinfo=None) > signed_in.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_upsert_requires_open_id(db_session: AsyncSession):
    with pytest.raises(ValidationError):
        await user_service.upsert_user(db_session, UserUpsert(open_id=""))


@pytest.mark.asyncio
async def test_lookup_by_open_id_and_id(db_session: AsyncSession):
    user = await user_service.upsert_user(db_session, UserUpsert(open_id="lookup"))
    assert (await user_service.get_user_by_open_id(db_session, "lookup")).id == user.id
    assert (await user_service.get_user_by_id(db_session, user.id)).open_id == "lookup"
    assert await user_service.get_user_by_open_id(db_session, "nobody") is None


# ---------------------------------------------------------------------------
# /auth/me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_anonymous(async_client: AsyncClient, seeded: dict):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_me_unknown_identity_is_anonymous(async_client: AsyncClient, seeded: dict):
    resp = await async_client.get("/api/v1/auth/me", headers={"X-User-Open-Id": "stranger"})
    assert resp.json() is None


@pytest.mark.asyncio
async def test_me_resolves_caller(async_client: AsyncClient, seeded: dict, admin_headers: dict):
    resp = await async_client.get("/api/v1/auth/me", headers=admin_headers)
    assert resp.status_code == 200
    me = resp.json()
    assert me["id"] == seeded["admin"]
    assert me["role"] == "admin"
    assert me["name"] == "Owner"
