"""User profile model."""

from app.models.base import CamelModel


class UserProfile(CamelModel):
    """Per-user provider credentials.

    The Cloudflare token is stored encrypted; the GitHub token is stored as-is.
    """

    uid: str
    email: str | None = None
    display_name: str | None = None
    github_token: str | None = None
    cloudflare_token: str | None = None
    google_token: str | None = None
    google_refresh_token: str | None = None
