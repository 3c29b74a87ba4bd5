from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required runtime settings are missing."""


class AwsConfig(BaseSettings):
    """AWS credentials and region shared by every service client."""

    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[SecretStr] = None

    model_config = SettingsConfigDict(
        env_prefix="AWS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class StorageConfig(BaseSettings):
    """S3 configuration"""

    bucket_name: Optional[str] = None
    presign_ttl_seconds: int = Field(default=3600, ge=1, le=604800)

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TranscribeConfig(BaseSettings):
    """Amazon Transcribe batch job configuration."""

    media_format: Optional[str] = None
    job_prefix: str = "audio-transcription-job-"

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PollyConfig(BaseSettings):
    """Amazon Polly configuration."""

    engine: str = "standard"
    output_format: Optional[str] = None
    default_voice_id: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="POLLY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class NotificationConfig(BaseSettings):
    """Where the delivery notification is published."""

    backend: str = Field(default="iot", pattern="^(iot|rabbitmq)$")
    topic: Optional[str] = None
    # inline: the completion run publishes. storage_event: the S3 object-created
    # consumer publishes and the completion run does not.
    delivery_mode: str = Field(default="inline", pattern="^(inline|storage_event)$")
    iot_endpoint: Optional[str] = None
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_username: str = "guest"
    rabbitmq_password: SecretStr = Field(default=SecretStr("guest"))
    rabbitmq_exchange: str = "speech-relay"

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class LanguageConfig(BaseSettings):
    """Language pair defaults applied when the client omits its headers."""

    default_source: str = "zh-TW"
    default_target: str = "en-US"
    supported: list[str] = ["en-US", "zh-TW", "it-IT"]

    model_config = SettingsConfigDict(
        env_prefix="LANGUAGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Speech Relay"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/speech_pipeline.log"
    transcript_log_file: str = "logs/transcripts.log"

    aws: AwsConfig = Field(default_factory=AwsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    transcribe: TranscribeConfig = Field(default_factory=TranscribeConfig)
    polly: PollyConfig = Field(default_factory=PollyConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    language: LanguageConfig = Field(default_factory=LanguageConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def missing_runtime_settings(self) -> list[str]:
        """Return the environment names of required values that are unset."""

        required = {
            "AWS_REGION": self.aws.region,
            "STORAGE_BUCKET_NAME": self.storage.bucket_name,
            "TRANSCRIBE_MEDIA_FORMAT": self.transcribe.media_format,
            "POLLY_OUTPUT_FORMAT": self.polly.output_format,
            "NOTIFY_TOPIC": self.notification.topic,
        }
        return [name for name, value in required.items() if not value]

    def ensure_runtime_ready(self) -> None:
        """Fail fast when the pipeline cannot run with the current environment."""

        missing = self.missing_runtime_settings()
        if missing:
            raise ConfigurationError(
                "Missing required settings: " + ", ".join(missing)
            )


# Global settings instance
settings = Settings()
