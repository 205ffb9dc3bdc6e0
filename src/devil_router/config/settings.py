"""
Pydantic Settings Configuration
=================================

Type-safe configuration for the routing core. Values are validated at
startup so a broken routing table or store setting fails fast.
"""

from importlib import metadata
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from devil_router.routing.routing_table import RoutingTable, default_rules


def _project_version() -> str:
    """Resolve the project version from package metadata."""
    try:
        return metadata.version("devil-router")
    except metadata.PackageNotFoundError:
        return "0.0.0-dev"


class CategoryRuleConfig(BaseModel):
    """One category entry of a custom routing table"""
    name: str = Field(..., min_length=1, description="Category label")
    credential_name: str = Field(..., min_length=1, description="Credential looked up for this category")
    stage: str = Field(..., description="urgent, structured, layout, generative, fast, general or default")
    triggers: List[str] = Field(default_factory=list, description="Lowercase substring triggers, in order")


class RoutingConfig(BaseModel):
    """Classifier and router configuration"""
    default_category: str = Field("main_brain", description="Fallback category")
    fast_category: str = Field("fast", description="Category used by the short-message fast path")
    short_message_length: int = Field(30, ge=0, description="Messages shorter than this are always fast")
    quick_message_length: int = Field(
        100, ge=0, description="Messages shorter than this are fast when a fast trigger is present"
    )
    categories: Optional[List[CategoryRuleConfig]] = Field(
        None, description="Replaces the built-in category table when set"
    )

    @model_validator(mode='after')
    def validate_thresholds(self) -> "RoutingConfig":
        if self.quick_message_length < self.short_message_length:
            raise ValueError("quick_message_length must be at least short_message_length")
        return self

    model_config = ConfigDict(extra='forbid')


class StoreConfig(BaseModel):
    """Credential persistence configuration"""
    backend: str = Field("sqlite", description="Repository backend (sqlite, memory)")
    db_path: Path = Field(Path("data/credentials.db"), description="SQLite database path")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {'sqlite', 'memory'}:
            raise ValueError("Store backend must be one of: sqlite, memory")
        return v_lower

    model_config = ConfigDict(extra='allow')


class EncryptionConfig(BaseModel):
    """Where the credential encryption key is read from"""
    key_name: str = Field("ENCRYPTION_KEY", description="Secret name holding the Fernet key or passphrase")
    secret_backend: str = Field("env", description="Secret provider backend (env, docker, composite)")
    secrets_dir: Path = Field(Path("/run/secrets"), description="Docker secrets directory")

    @field_validator('secret_backend')
    @classmethod
    def validate_secret_backend(cls, v: str) -> str:
        if v not in {'env', 'docker', 'composite'}:
            raise ValueError("secret_backend must be one of: env, docker, composite")
        return v

    model_config = ConfigDict(extra='allow')


class ProviderConfig(BaseModel):
    """Upstream model provider used by the key probe"""
    base_url: str = Field("https://openrouter.ai/api/v1", description="Provider API base URL")
    timeout_seconds: float = Field(10.0, gt=0, le=300, description="Probe request timeout")

    model_config = ConfigDict(extra='allow')


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field("json", description="Log format (json, text)")

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    model_config = ConfigDict(extra='allow')


class Settings(BaseSettings):
    """
    Application settings.

    Configuration is loaded from:
    1. YAML config file (if provided)
    2. Environment variables with DEVIL_ prefix (for fields the YAML omits)
    3. Default values (fallback)

    Environment variable mapping uses double-underscore nesting:
      DEVIL_STORE__DB_PATH
      DEVIL_ROUTING__SHORT_MESSAGE_LENGTH
      DEVIL_LOGGING__LEVEL
    """

    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    project_name: str = Field("DEVIL DEV", description="Project name")
    version: str = Field(default_factory=_project_version, description="Project version")

    model_config = ConfigDict(
        env_prefix='DEVIL_',
        env_nested_delimiter='__',
        extra='allow',
        validate_assignment=True,
    )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "Settings":
        """
        Load settings from a YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables only."""
        return cls()


def build_routing_table(settings: Settings) -> RoutingTable:
    """
    Turn routing settings into a validated RoutingTable.

    Raises:
        ConfigurationError: If the table is inconsistent
    """
    routing = settings.routing
    options = dict(
        default_category=routing.default_category,
        fast_category=routing.fast_category,
        short_message_length=routing.short_message_length,
        quick_message_length=routing.quick_message_length,
    )
    if routing.categories is None:
        return RoutingTable(rules=default_rules(), **options)
    return RoutingTable.from_mapping([c.model_dump() for c in routing.categories], **options)


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """
    Load and validate application settings.

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path:
        return Settings.from_yaml(config_path)
    return Settings.from_env()


__all__ = [
    'Settings',
    'CategoryRuleConfig',
    'RoutingConfig',
    'StoreConfig',
    'EncryptionConfig',
    'ProviderConfig',
    'LoggingConfig',
    'build_routing_table',
    'load_settings',
]
