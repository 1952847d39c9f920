"""Tests for bearer token decoding and role checks."""
import uuid

import pytest
from fastapi import HTTPException
from jose import jwt

from sdg_portal.core.config import settings
from sdg_portal.core.deps import Principal, get_current_user, require_role
from sdg_portal.core.security import create_access_token, decode_token

USER_ID = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")


def test_access_token_round_trip():
    token = create_access_token(str(USER_ID), "admin")
    payload = decode_token(token)

    assert payload["sub"] == str(USER_ID)
    assert payload["role"] == "admin"
    assert payload["type"] == "access"


@pytest.mark.asyncio
async def test_current_user_resolved_from_token():
    token = create_access_token(str(USER_ID), "data_entry_user")

    user = await get_current_user(token)

    assert user == Principal(id=USER_ID, role="data_entry_user")


@pytest.mark.asyncio
async def test_unknown_role_is_rejected():
    token = create_access_token(str(USER_ID), "viewer")

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_non_access_token_is_rejected():
    token = jwt.encode(
        {"sub": str(USER_ID), "role": "admin", "type": "refresh"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_malformed_subject_is_rejected():
    token = create_access_token("not-a-uuid", "admin")

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_rejected():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user("not.a.jwt")
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_require_role_blocks_other_roles():
    check = require_role("admin")

    with pytest.raises(HTTPException) as exc_info:
        await check(user=Principal(id=USER_ID, role="data_entry_user"))
    assert exc_info.value.status_code == 403

    admin = Principal(id=USER_ID, role="admin")
    assert await check(user=admin) is admin
