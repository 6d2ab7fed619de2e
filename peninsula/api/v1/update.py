"""Admin self-update endpoints: drift check against the git remote and script execution."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from peninsula.api.deps import require_admin
from peninsula.core.database import get_db
from peninsula.core.errors import ConflictError, UpstreamFailure
from peninsula.schemas.auth import AccessTokenClaims
from peninsula.schemas.update import UpdateApplyResponse, UpdateCheckResult
from peninsula.services.audit import AuditAction, write_audit
from peninsula.services.updater import (
    UpdateCheckError,
    UpdateInProgressError,
    UpdateOrchestrator,
    UpdateScriptError,
    UpdateSpawnError,
    get_update_orchestrator,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/check", response_model=UpdateCheckResult)
async def check_update(
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    orchestrator: Annotated[UpdateOrchestrator, Depends(get_update_orchestrator)],
) -> UpdateCheckResult:
    """
    Report whether the tracked remote branch has commits the local checkout lacks.
    Git diagnostics are returned on failure (admin-only path).
    """
    try:
        result = await orchestrator.check()
    except UpdateCheckError as e:
        logger.error("Update check failed", extra={"reason": e.message[:500]})
        raise UpstreamFailure("update_check_failed", details=e.message) from e
    await run_in_threadpool(write_audit, db, admin.sub, AuditAction.UPDATE_CHECK)
    return result


@router.post("/apply", response_model=UpdateApplyResponse)
async def apply_update(
    admin: Annotated[AccessTokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    orchestrator: Annotated[UpdateOrchestrator, Depends(get_update_orchestrator)],
) -> UpdateApplyResponse:
    """
    Run the update script. Only one run at a time; a concurrent request gets 409
    immediately. Timeout is 120 seconds.
    """
    try:
        result = await orchestrator.apply(
            on_start=lambda: run_in_threadpool(
                write_audit, db, admin.sub, AuditAction.UPDATE_APPLY
            )
        )
    except UpdateInProgressError as e:
        raise ConflictError("update_already_in_progress") from e
    except UpdateScriptError as e:
        raise UpstreamFailure(
            "update_script_failed",
            exitCode=e.exit_code,
            stdout=e.stdout,
            stderr=e.stderr,
        ) from e
    except UpdateSpawnError as e:
        raise UpstreamFailure("update_apply_failed", details=e.message) from e
    return UpdateApplyResponse(success=True, output=result.stdout)
