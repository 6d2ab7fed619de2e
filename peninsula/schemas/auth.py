"""Request/response schemas for auth endpoints and token claims."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=3, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenPairResponse(BaseModel):
    """Access and refresh tokens returned after successful login."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", description="JWT access token")
    refresh_token: str = Field(..., alias="refreshToken", description="JWT refresh token")


class RefreshRequest(BaseModel):
    """Body for POST /auth/refresh. The token is optional so absence maps to missing_refresh."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class AccessTokenResponse(BaseModel):
    """Fresh access token returned by refresh."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")


class AccessTokenClaims(BaseModel):
    """Verified claims of an access token; attached to each authenticated request."""

    sub: int
    role: str
    username: str
    exp: int


class RefreshTokenClaims(BaseModel):
    """Verified claims of a refresh token."""

    sub: int
    role: str
    exp: int
