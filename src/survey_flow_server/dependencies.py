"""FastAPI dependency injection for DB sessions, stores, and form phase.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error;
repositories call ``flush()`` but never ``commit()``, so a multi-statement
linker rewrite is all-or-nothing.

``require_unpublished`` and ``require_published`` are the editing-phase
and submission-phase gates.  The SDK itself never checks the phase.
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survey_flow.authoring import FormAuthor
from survey_flow.errors import EditingLocked, FormNotPublished, FormPublished
from survey_flow.interfaces import GraphStore
from survey_flow.linker import SectionLinker
from survey_flow.validator import SubmissionValidator
from survey_flow_db.engine import get_session_factory
from survey_flow_db.repository import FormConfigRepository, GraphRepository


# ------------------------------------------------------------------
# Database session (transaction boundary)
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Stores & engine components (request-scoped, bound to the session)
# ------------------------------------------------------------------

_config_repo = FormConfigRepository()


def get_graph_store(db: AsyncSession = Depends(get_db)) -> GraphStore:
    return GraphRepository(db)


def get_config_repo() -> FormConfigRepository:
    return _config_repo


def get_linker(store: GraphStore = Depends(get_graph_store)) -> SectionLinker:
    return SectionLinker(store)


def get_author(store: GraphStore = Depends(get_graph_store)) -> FormAuthor:
    return FormAuthor(store)


def get_validator(store: GraphStore = Depends(get_graph_store)) -> SubmissionValidator:
    return SubmissionValidator(store)


# ------------------------------------------------------------------
# Form phase gates
# ------------------------------------------------------------------

async def require_unpublished(
    db: AsyncSession = Depends(get_db),
    config: FormConfigRepository = Depends(get_config_repo),
) -> None:
    """Allow structural edits only while the form is an unlocked draft.

    Raises:
        EditingLocked: editing is locked (423).
        FormPublished: the form is published (403).
    """
    if await config.is_editing_locked(db):
        raise EditingLocked()
    if await config.is_published(db):
        raise FormPublished()


async def require_published(
    db: AsyncSession = Depends(get_db),
    config: FormConfigRepository = Depends(get_config_repo),
) -> None:
    """Accept submissions only for a published form (403 otherwise)."""
    if not await config.is_published(db):
        raise FormNotPublished()
