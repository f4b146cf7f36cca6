"""Form configuration endpoints: publish switch and editing lock.

Publishing runs ``FormAuthor.check_publishable`` first, so a form whose
graph cannot be walked end to end is never exposed to submissions.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from survey_flow.authoring import FormAuthor
from survey_flow.constants import CONFIG_EDITING_LOCKED, CONFIG_PUBLISHED
from survey_flow.errors import EditingLocked
from survey_flow_db.repository import FormConfigRepository

from survey_flow_server.dependencies import get_author, get_config_repo, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


class FormConfigView(BaseModel):
    published: bool
    editing_locked: bool


class PublishRequest(BaseModel):
    published: bool


class EditingLockRequest(BaseModel):
    editing_locked: bool


async def _view(db: AsyncSession, config: FormConfigRepository) -> FormConfigView:
    values = await config.get_all(db)
    return FormConfigView(
        published=values[CONFIG_PUBLISHED] == "true",
        editing_locked=values[CONFIG_EDITING_LOCKED] == "true",
    )


@router.get("")
async def get_config(
    db: AsyncSession = Depends(get_db),
    config: FormConfigRepository = Depends(get_config_repo),
) -> FormConfigView:
    return await _view(db, config)


@router.put("/published")
async def set_published(
    body: PublishRequest,
    db: AsyncSession = Depends(get_db),
    config: FormConfigRepository = Depends(get_config_repo),
    author: FormAuthor = Depends(get_author),
) -> FormConfigView:
    """Publish or unpublish the form.

    Raises 423 while editing is locked, and 400 (``WrongData``) when the
    graph fails the publish check.
    """
    if await config.is_editing_locked(db):
        raise EditingLocked()
    if body.published:
        await author.check_publishable()
    await config.set_value(db, CONFIG_PUBLISHED, "true" if body.published else "false")
    return await _view(db, config)


@router.put("/editing-lock")
async def set_editing_lock(
    body: EditingLockRequest,
    db: AsyncSession = Depends(get_db),
    config: FormConfigRepository = Depends(get_config_repo),
) -> FormConfigView:
    await config.set_value(
        db, CONFIG_EDITING_LOCKED, "true" if body.editing_locked else "false"
    )
    return await _view(db, config)
