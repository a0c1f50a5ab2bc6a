"""Canonical Pydantic models shared across all supaauth modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ProviderConfig`.

**Protocol models** -- built or parsed while talking to the identity broker:
    :class:`AuthorizationRequest`, :class:`UserMetadata`,
    :class:`AppMetadata`, and :class:`UserProfile`.

All models use Pydantic v2. Values that must not change during one
invocation are declared ``frozen``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Provider Config ---


class ProviderConfig(BaseModel):
    """Connection settings for the identity broker and the upstream OAuth app.

    Loaded once per invocation by :func:`~supaauth.config.resolve_provider_config`
    and never mutated afterwards. Field names match the keys of the on-disk
    ``config.json`` file.

    Example::

        ProviderConfig(
            supabase_url="https://abc.supabase.co",
            supabase_anon_key="eyJhbGciOi...",
            github_client_id="Iv1.0123456789abcdef",
        )
    """

    model_config = ConfigDict(frozen=True)

    supabase_url: str = Field(
        default="https://your-project.supabase.co",
        description="Base URL of the Supabase project (the identity broker)",
    )
    supabase_anon_key: str = Field(
        default="your-anon-key",
        description="Public anon key sent as the 'apikey' header",
    )
    github_client_id: str = Field(
        default="your-github-client-id",
        description="Client id of the GitHub OAuth app",
    )

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


# --- Authorization request ---


class AuthorizationRequest(BaseModel):
    """One authorization attempt against the broker's ``/authorize`` endpoint.

    Built fresh for every flow attempt by
    :meth:`~supaauth.client.identity.IdentityClient.authorization_request`
    so that each attempt carries its own ``state`` nonce.
    """

    model_config = ConfigDict(frozen=True)

    provider: str = "github"
    client_id: str
    redirect_to: str
    response_type: str = "token"
    scopes: str = "user:email"
    state: str
    flow_type: Optional[str] = None

    def query_params(self) -> list[tuple[str, str]]:
        """Return the query parameters in the order the broker documents them."""
        params = [
            ("provider", self.provider),
            ("client_id", self.client_id),
            ("redirect_to", self.redirect_to),
            ("response_type", self.response_type),
            ("scopes", self.scopes),
            ("state", self.state),
        ]
        if self.flow_type is not None:
            params.append(("flow_type", self.flow_type))
        return params


# --- User profile ---


class UserMetadata(BaseModel):
    """Provider-supplied details copied into the broker's user record."""

    avatar_url: Optional[str] = None
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    phone_verified: Optional[bool] = None
    full_name: Optional[str] = None
    iss: Optional[str] = None
    name: Optional[str] = None
    preferred_username: Optional[str] = None
    provider_id: Optional[str] = None
    sub: Optional[str] = None
    user_name: Optional[str] = None


class AppMetadata(BaseModel):
    """Broker-owned metadata: which provider(s) the account signed in with."""

    provider: str
    providers: list[str] = Field(default_factory=list)


class UserProfile(BaseModel):
    """The authenticated user as returned by ``GET /auth/v1/user``.

    Read-only and used for display only. ``email`` is optional: GitHub
    accounts with a private primary address come back without one.
    """

    id: str
    email: Optional[str] = None
    user_metadata: UserMetadata = Field(default_factory=UserMetadata)
    app_metadata: AppMetadata
    created_at: str

    @property
    def display_name(self) -> Optional[str]:
        return self.user_metadata.name or self.user_metadata.full_name

    @property
    def github_username(self) -> Optional[str]:
        return self.user_metadata.preferred_username or self.user_metadata.user_name

    def display_rows(self) -> list[tuple[str, str]]:
        """Return ``(label, value)`` pairs for human-readable output.

        Optional fields that are absent are left out rather than shown
        as empty.
        """
        rows = [("User ID", self.id)]
        if self.email:
            rows.append(("Email", self.email))
        if self.display_name:
            rows.append(("Name", self.display_name))
        if self.github_username:
            rows.append(("GitHub Username", self.github_username))
        rows.append(("Provider", self.app_metadata.provider))
        rows.append(("Account created at", self.created_at))
        return rows

    def __str__(self) -> str:
        parts = [f"id={self.id}"]
        if self.email:
            parts.append(f"email={self.email}")
        if self.display_name:
            parts.append(f"name={self.display_name}")
        if self.github_username:
            parts.append(f"username={self.github_username}")
        return f"User({', '.join(parts)})"
