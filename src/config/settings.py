"""
Dashboard settings.

Everything is read from environment variables (or a .env file) and
has a default that matches the production platform: the
jestr-meme-uploads bucket, the Memes/ prefix and the platform's table
names. Pydantic validates types when the settings are first loaded.

The *_mock_mode flags swap S3, DynamoDB or the history file for
in-memory stand-ins, so the page can be run without AWS credentials.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Dashboard settings; any field can be set from the environment."""

    # App Configuration
    app_title: str = "MemeDash"
    app_version: str = "v1"

    # AWS Credentials
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region for S3 and DynamoDB clients"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="AWS access key ID. Falls back to the default credential chain when unset."
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="AWS secret access key"
    )

    # S3 Media Configuration
    media_bucket: str = Field(
        default="jestr-meme-uploads",
        description="Bucket holding uploaded meme media"
    )
    media_prefix: str = Field(
        default="Memes/",
        description="Key prefix under which meme media is stored"
    )
    list_page_size: int = Field(
        default=1000,
        description="MaxKeys per list_objects_v2 page. S3 caps this at 1000."
    )
    presign_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of signed media URLs shown in the grid"
    )
    grid_limit: int = Field(
        default=32,
        description="Number of most recent uploads shown in the media grid"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of S3. Enables local dev without a bucket."
    )

    # DynamoDB Tables
    profiles_table: str = "Profiles"
    memes_table: str = "Memes"
    feedback_table: str = "UserFeedback"
    interactions_table: str = "UserInteractions"
    notifications_table: str = "UserNotifications"
    likes_table: str = "UserLikes"
    comments_table: str = "Comments"
    conversations_table: str = "UserConversations_v2"
    dynamo_mock_mode: bool = Field(
        default=False,
        description="Use in-memory tables instead of DynamoDB"
    )

    # Trend History
    history_dir: str = Field(
        default=".memedash",
        description="Directory holding the locally persisted trend history"
    )
    history_slot: str = Field(
        default="meme_history",
        description="Name of the storage slot for the meme count series"
    )
    history_retention_days: int = Field(
        default=30,
        description="Days of history kept for the trend chart"
    )
    history_mock_mode: bool = Field(
        default=False,
        description="Keep the trend history in memory instead of on disk"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def validate_required_fields(self) -> list[str]:
        """
        Names of settings that must be fixed before the real clients work.

        Credentials may come from the default AWS chain, so only a
        half-set key pair is reported, never an absent one.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.media_bucket:
                missing.append("MEDIA_BUCKET")

        if not (self.storage_mock_mode and self.dynamo_mock_mode):
            if not self.aws_region:
                missing.append("AWS_REGION")
            # A key without its secret is always a mistake
            if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
                missing.append("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY")

        if not self.history_slot:
            missing.append("HISTORY_SLOT")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Settings loaded once per process.

    Tests build Settings directly (or call get_settings.cache_clear()).
    """
    return Settings()
