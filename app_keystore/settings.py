"""Core configuration settings for app-keystore deployments.

@public

Settings are loaded from environment variables (prefixed ``APP_KEYSTORE_``)
with .env file support via pydantic-settings.

Environment variables:
    APP_KEYSTORE_STORAGE_BACKEND: "memory" (default) or "gcs"
    APP_KEYSTORE_GCS_BUCKET: Bucket holding key and token documents
    APP_KEYSTORE_GCS_PREFIX: Optional object prefix inside the bucket
    APP_KEYSTORE_GCS_PROJECT: GCP project used when creating the bucket
    APP_KEYSTORE_GCS_SERVICE_ACCOUNT_FILE: Service account JSON; ADC when empty
    APP_KEYSTORE_LINK_*: Document name templates, see app_keystore.links

Example:
    >>> from app_keystore.settings import settings
    >>> print(settings.storage_backend)
    memory

Note:
    Settings are loaded once at module import and frozen. The process must be
    restarted to pick up changes to the environment or .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment configuration for the key and token stores.

    @public

    Attributes:
        storage_backend: Which document store backend to construct.
        gcs_bucket: Bucket name for the GCS backend. Required when
                    storage_backend is "gcs".
        gcs_prefix: Object name prefix, lets several deployments share a bucket.
        gcs_project: Project for bucket creation; the client default otherwise.
        gcs_service_account_file: Path to a service account JSON key. Empty
                                  means Application Default Credentials.
        retry_attempts: Attempts for transient backend failures.
        retry_base_delay: First backoff delay in seconds.
        retry_max_delay: Upper bound for a single backoff delay.
        link_*: Document name templates using {App} and {Install}.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_KEYSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    storage_backend: Literal["memory", "gcs"] = "memory"

    # Google Cloud Storage
    gcs_bucket: str = ""
    gcs_prefix: str = ""
    gcs_project: str = ""
    gcs_service_account_file: str = ""

    # Backend retry policy
    retry_attempts: int = 3
    retry_base_delay: float = 0.5
    retry_max_delay: float = 8.0

    # Document naming
    link_app_index: str = "apps/index.json"
    link_app: str = "apps/{App}/app.json"
    link_app_keys: str = "apps/{App}/keys.json"
    link_app_token: str = "tokens/{App}/app.json"
    link_install_token: str = "tokens/{App}/installs/{Install}.json"


settings = Settings()
"""Global settings instance, created at import time.

@public
"""
