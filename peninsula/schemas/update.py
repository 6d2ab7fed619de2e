"""Response schemas for the self-update endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class RepoState(BaseModel):
    """Head commit of the local checkout or of the tracked remote branch."""

    hash: str = Field(..., description="Commit hash, shortened")
    message: str = Field(..., description="Commit subject line")
    date: str = Field(..., description="Committer date (ISO-like, as printed by git)")


class UpdateCheckResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    update_available: bool = Field(..., alias="updateAvailable")
    commits_behind: int = Field(..., ge=0, alias="commitsBehind")
    branch: str
    local: RepoState
    remote: RepoState


class UpdateApplyResponse(BaseModel):
    success: bool = True
    output: str
