"""
Application Configuration
Add constants, secrets, env variables here
"""

from functools import lru_cache
import os
import json
import string
from pathlib import Path
from pydantic import computed_field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

# Load .env file into os.environ so os.getenv() works correctly
# This must happen before Settings class is instantiated
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_secret(secret_name: str, region_name: str) -> dict:
    """
    Retrieve secrets from AWS Secrets Manager

    Args:
        secret_name: Name of the secret in Secrets Manager
        region_name: AWS region where secret is stored

    Returns:
        dict: Parsed secret value

    Raises:
        ClientError: If secret cannot be retrieved
    """
    session = boto3.session.Session()
    client = session.client(
        service_name='secretsmanager',
        region_name=region_name
    )
    try:
        get_secret_value_response = client.get_secret_value(
            SecretId=secret_name
        )
    except ClientError:
        raise
    secret = get_secret_value_response['SecretString']
    return json.loads(
        secret.replace('\n', '')
    )


# Define settings class for univeral access
class Settings(BaseSettings):
    # CORS origin for a separately hosted client
    client_origin: str | None = os.getenv("client_origin")

    # Cache for AWS Secrets Manager to avoid multiple API calls
    # Note: Must use PrivateAttr for Pydantic v2 private attributes
    _secret_cache: dict | None = PrivateAttr(default=None)

    def _get_config_value(
        self,
        env_var_name: str,
        secret_key_name: str | None = None,
        default: str | None = None
    ) -> str | None:
        """
        Get configuration value from environment variable or AWS Secrets Manager (with caching).

        Args:
            env_var_name: Environment variable name to check first
            secret_key_name: Key name in AWS Secrets (defaults to env_var_name if not provided)
            default: Default value to return if not found in env or secrets

        Returns:
            Configuration value, or default value if not found
        """
        # 1. Check environment variable first
        env_value = os.getenv(env_var_name)
        if env_value:
            return env_value

        # 2. Secrets Manager, only when a secret name is configured
        env_secret = os.getenv("ENV_SECRETS")
        if not env_secret:
            return default

        if secret_key_name is None:
            secret_key_name = env_var_name

        try:
            if self._secret_cache is None:
                self._secret_cache = get_secret(env_secret, os.getenv("AWS_REGION", 'us-east-1'))

            secret_value = self._secret_cache.get(secret_key_name)
            if secret_value is not None:
                return secret_value
        except (BotoCoreError, ClientError):
            pass

        # 3. Return default value if provided
        return default

    # SQLAlchemy - Create db connection string
    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Build database URI from env or secrets, defaults to a local sqlite file"""
        return self._get_config_value(
            "SQLALCHEMY_DATABASE_URI", default="sqlite:///./quickdrop.db"
        )

    # Public address used in share links and QR codes
    BASE_URL: str | None = None
    PORT: int = 8000

    # Blob storage
    UPLOAD_DIR: Path = Path("uploads")
    QR_DIR: Path | None = None
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024  # 100 MB

    # Download admission
    MAX_DOWNLOADS: int = 3

    # Access codes
    ACCESS_CODE_LENGTH: int = 8
    ACCESS_CODE_ALPHABET: str = string.ascii_uppercase + string.digits
    ACCESS_CODE_MAX_ATTEMPTS: int = 10

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    LOG_LEVEL: str = "INFO"

    @computed_field
    @property
    def PUBLIC_BASE_URL(self) -> str:
        """Base URL for share links, without a trailing slash"""
        if self.BASE_URL:
            return self.BASE_URL.rstrip("/")
        return f"http://localhost:{self.PORT}"

    @computed_field
    @property
    def QR_CODE_DIR(self) -> Path:
        """Directory holding generated QR code images"""
        return self.QR_DIR if self.QR_DIR is not None else self.UPLOAD_DIR / "qr"

    # Read environment variables from .env file, if it exists
    # extra='ignore' prevents validation errors from extra env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Export settings
@lru_cache
def get_settings() -> Settings:
    """
    Get settings instance, cached for performance
    """
    return Settings()


if __name__ == "__main__":
    print(get_settings().SQLALCHEMY_DATABASE_URI)
