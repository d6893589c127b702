"""
Selects and wires the storage backend from Settings at start-up.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from config import Settings
from database import create_engine, init_db
from services.auth import AuthService
from services.local_store import LocalStore
from services.repository import LocalRepository, LoanRepository, SqlRepository
from services.workflow import StatusWorkflow

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    mode: str
    repository: LoanRepository
    auth: AuthService
    workflow: StatusWorkflow

    async def close(self) -> None:
        await self.repository.close()


async def build_backend(settings: Settings) -> Backend:
    mode = settings.resolve_storage_mode()
    workflow = StatusWorkflow(strict=settings.workflow_strict)

    if mode == "remote":
        engine = create_engine(settings.backend_url, debug=settings.debug)
        await init_db(engine)
        repository: LoanRepository = SqlRepository(engine)
        secret_key = settings.backend_api_key
        logger.info("Using hosted backend")
    else:
        if settings.storage_mode == "auto":
            missing = ", ".join(settings.missing_backend_settings)
            logger.warning(f"Hosted backend not configured (missing {missing}); using the local store")
        repository = LocalRepository(LocalStore(settings.local_store_path, workflow=workflow))
        # Sessions from a generated key do not survive a restart
        secret_key = settings.backend_api_key or secrets.token_urlsafe(32)
        logger.info(f"Using local store at {settings.local_store_path or '<memory>'}")

    auth = AuthService(
        repository,
        secret_key=secret_key,
        session_ttl=timedelta(minutes=settings.session_ttl_minutes),
    )
    return Backend(mode=mode, repository=repository, auth=auth, workflow=workflow)
