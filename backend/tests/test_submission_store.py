"""Tests for the SQL and HTTP submission stores."""
import json
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from sdg_portal.core.config import Settings
from sdg_portal.services.submission_store import (
    SUBMISSIONS_PATH,
    HttpSubmissionStore,
    SqlSubmissionStore,
    build_api_client,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

FORM_ID = uuid.UUID("0b7a3c1e-58f4-4f1e-9c55-0d2f4a8e9b11")
USER_ID = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")


def submission_json(data, schedule_id=None):
    return {
        "id": str(uuid.uuid4()),
        "form_id": str(FORM_ID),
        "schedule_id": str(schedule_id) if schedule_id else None,
        "submitted_by": str(USER_ID),
        "submitted_at": "2024-03-01T10:00:00Z",
        "data": data,
    }


def make_session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


# ─── HttpSubmissionStore ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_http_store_lists_by_form():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["form_id"] = request.url.params.get("form_id")
        return httpx.Response(200, json=[submission_json({"year": "2020"})])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api") as client:
        submissions = await HttpSubmissionStore(client).list_submissions(FORM_ID)

    assert seen == {"path": SUBMISSIONS_PATH, "form_id": str(FORM_ID)}
    assert submissions[0].data == {"year": "2020"}


@pytest.mark.asyncio
async def test_http_store_posts_payload():
    bodies = []
    schedule_id = uuid.uuid4()

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(201, json=submission_json(body["data"], schedule_id))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api") as client:
        created = await HttpSubmissionStore(client).create_submission(
            FORM_ID, {"year": "2021"}, submitted_by=USER_ID, schedule_id=schedule_id
        )

    assert bodies == [
        {"form_id": str(FORM_ID), "data": {"year": "2021"}, "schedule_id": str(schedule_id)},
    ]
    assert created.schedule_id == schedule_id


@pytest.mark.asyncio
async def test_http_store_raises_on_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "Internal server error."})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api") as client:
        with pytest.raises(httpx.HTTPStatusError):
            await HttpSubmissionStore(client).list_submissions(FORM_ID)


@pytest.mark.asyncio
async def test_api_client_sends_bearer_token():
    settings = Settings(API_BASE_URL="http://api.example", API_TOKEN="tok-123")

    async with build_api_client(settings) as client:
        assert client.headers["Authorization"] == "Bearer tok-123"
        assert str(client.base_url).startswith("http://api.example")


# ─── SqlSubmissionStore ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sql_store_creates_in_its_own_session():
    session = MagicMock()
    session.commit = AsyncMock()

    async def fake_refresh(obj):
        obj.id = uuid.uuid4()
        obj.submitted_at = datetime.now(timezone.utc)

    session.refresh = AsyncMock(side_effect=fake_refresh)
    factory = make_session_factory(session)

    created = await SqlSubmissionStore(factory).create_submission(
        FORM_ID, {"year": "2020"}, submitted_by=USER_ID
    )

    factory.assert_called_once_with()
    session.add.assert_called_once()
    added = session.add.call_args.args[0]
    assert added.form_id == FORM_ID
    assert added.submitted_by == USER_ID
    assert added.data == {"year": "2020"}
    session.commit.assert_awaited_once()
    assert created.data == {"year": "2020"}


@pytest.mark.asyncio
async def test_sql_store_lists_submissions():
    row = MagicMock(
        id=uuid.uuid4(),
        form_id=FORM_ID,
        schedule_id=None,
        submitted_by=USER_ID,
        submitted_at=datetime.now(timezone.utc),
        data={"year": "2020"},
    )
    result = MagicMock()
    result.scalars.return_value.all.return_value = [row]
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)

    submissions = await SqlSubmissionStore(make_session_factory(session)).list_submissions(FORM_ID)

    assert [s.data for s in submissions] == [{"year": "2020"}]
    session.execute.assert_awaited_once()
