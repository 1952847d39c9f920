"""Submission store used by the CSV importer.

The importer only needs two operations: list what a form already holds and
create one submission. ``SqlSubmissionStore`` talks to the database directly;
``HttpSubmissionStore`` goes through the REST API and is what the
command-line importer uses.
"""
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Protocol

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sdg_portal.core.config import Settings
from sdg_portal.models.form import FormSubmission
from sdg_portal.schemas.submission import FormSubmissionOut

logger = logging.getLogger(__name__)

SUBMISSIONS_PATH = "/api/v1/form-submissions"


class SubmissionStore(Protocol):
    async def list_submissions(self, form_id: uuid.UUID) -> list[FormSubmissionOut]:
        ...

    async def create_submission(
        self,
        form_id: uuid.UUID,
        data: Mapping[str, Any],
        *,
        submitted_by: uuid.UUID,
        schedule_id: uuid.UUID | None = None,
    ) -> FormSubmissionOut:
        ...


class SqlSubmissionStore:
    """Database-backed store.

    Every call opens its own short-lived session, so concurrent
    ``create_submission`` calls are independent inserts: one failing does not
    roll back the others.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_submissions(self, form_id: uuid.UUID) -> list[FormSubmissionOut]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(FormSubmission)
                .where(FormSubmission.form_id == form_id)
                .order_by(FormSubmission.submitted_at.asc())
            )
            return [FormSubmissionOut.model_validate(s) for s in result.scalars().all()]

    async def create_submission(
        self,
        form_id: uuid.UUID,
        data: Mapping[str, Any],
        *,
        submitted_by: uuid.UUID,
        schedule_id: uuid.UUID | None = None,
    ) -> FormSubmissionOut:
        async with self._session_factory() as db:
            submission = FormSubmission(
                form_id=form_id,
                schedule_id=schedule_id,
                submitted_by=submitted_by,
                data=dict(data),
            )
            db.add(submission)
            await db.commit()
            await db.refresh(submission)
            return FormSubmissionOut.model_validate(submission)


class HttpSubmissionStore:
    """REST-backed store.

    ``submitted_by`` is accepted for protocol compatibility only; the server
    stamps submissions with the identity behind the client's bearer token.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_submissions(self, form_id: uuid.UUID) -> list[FormSubmissionOut]:
        response = await self._client.get(SUBMISSIONS_PATH, params={"form_id": str(form_id)})
        response.raise_for_status()
        return [FormSubmissionOut.model_validate(item) for item in response.json()]

    async def create_submission(
        self,
        form_id: uuid.UUID,
        data: Mapping[str, Any],
        *,
        submitted_by: uuid.UUID,
        schedule_id: uuid.UUID | None = None,
    ) -> FormSubmissionOut:
        payload: dict[str, Any] = {"form_id": str(form_id), "data": dict(data)}
        if schedule_id is not None:
            payload["schedule_id"] = str(schedule_id)
        response = await self._client.post(SUBMISSIONS_PATH, json=payload)
        response.raise_for_status()
        return FormSubmissionOut.model_validate(response.json())


def build_api_client(settings: Settings, token: str | None = None) -> httpx.AsyncClient:
    """AsyncClient pointed at API_BASE_URL, authenticated with a bearer token."""
    bearer = token or settings.API_TOKEN
    headers = {"Authorization": f"Bearer {bearer}"} if bearer else {}
    logger.debug("API client base_url=%s authenticated=%s", settings.API_BASE_URL, bool(bearer))
    return httpx.AsyncClient(
        base_url=settings.API_BASE_URL,
        headers=headers,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
