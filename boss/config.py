import dataclasses
import logging
from typing import Literal
from typing import Optional

import dotenv
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from boss.messages import MessageCatalog
from boss.utils import env
from boss.utils import load_json_file
from boss.utils import to_bool


dotenv.load_dotenv()

logger = logging.getLogger(__name__)


class ObjectStoreConfig(BaseModel):
    """One named storage backend block."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["GCS", "S3", "FCS"] = Field(..., description="Storage technology")
    endpoint: str = Field(..., description="Base URL of the backend, no trailing slash")
    bucket: str = Field(..., description="Bucket holding this platform's objects")
    username: Optional[str] = Field(None, description="Access id (GCS service account, S3 access key)")
    password: Optional[str] = Field(None, description="Secret (S3 secret key, PKCS#12 password for GCS)")
    key_file: Optional[str] = Field(None, alias="keyFile", description="GCS private key file (PKCS#12 or PEM)")
    region: Optional[str] = Field(None, description="S3 signing region")
    path_style_access: bool = Field(False, alias="pathStyleAccess")
    read_only: bool = Field(False, alias="readOnly")


@dataclasses.dataclass(frozen=True)
class Config:
    """Application configuration settings."""

    # Database Configuration
    database_url: str = env("DATABASE_URL")
    create_schema: bool = env("BOSS_CREATE_SCHEMA:false", convert=to_bool)

    # Logging
    log_level: str = env("LOG_LEVEL:INFO")
    loki_url: str = env("LOKI_URL:", convert=str)
    loki_enabled: bool = env("LOKI_ENABLED:false", convert=to_bool)

    # Server Configuration
    host: str = env("HOST:0.0.0.0")
    port: int = env("PORT:8080", convert=int)
    environment: str = env("ENVIRONMENT")
    debug: bool = env("DEBUG:false", convert=to_bool)
    enable_api_docs: bool = env("ENABLE_API_DOCS:false", convert=to_bool)

    # Object stores and messages
    object_stores_file: str = env("BOSS_OBJECT_STORES_FILE:", convert=str)
    messages_file: str = env("BOSS_MESSAGES_FILE:", convert=str)
    enable_fcs_service: bool = env("BOSS_ENABLE_FCS_SERVICE:false", convert=to_bool)

    # Lifetime of URLs the service signs for its own use (store deletes and probes)
    delete_expiry_seconds: int = env("BOSS_DELETE_EXPIRY_SECONDS:60", convert=int)
    # Lifetime of resumable upload initiation URLs
    resumable_validity_seconds: int = env("BOSS_RESUMABLE_VALIDITY_SECONDS:3600", convert=int)

    object_stores: dict[str, ObjectStoreConfig] = dataclasses.field(default_factory=dict)
    messages: MessageCatalog = dataclasses.field(default_factory=MessageCatalog)


def load_object_stores(path: str) -> dict[str, ObjectStoreConfig]:
    """Parse the named object store blocks from a JSON file."""
    data = load_json_file(path)
    if not isinstance(data, dict):
        raise ValueError(f"Object store configuration {path} must contain a JSON object")
    return {name: ObjectStoreConfig.model_validate(block) for name, block in data.items()}


def get_config() -> Config:
    """Get application configuration."""
    cfg = Config()

    env_value = getattr(cfg, "environment", None)
    if not env_value or not env_value.strip():
        raise ValueError("ENVIRONMENT variable is required but not set or empty")

    if cfg.object_stores_file:
        object.__setattr__(cfg, "object_stores", load_object_stores(cfg.object_stores_file))
    else:
        logger.warning("BOSS_OBJECT_STORES_FILE not set; only opaqueURI objects can be registered")

    if cfg.messages_file:
        object.__setattr__(cfg, "messages", MessageCatalog.from_file(cfg.messages_file))

    return cfg
