"""
Pydantic Settings Models for Event Dead Letters Configuration
"""

from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CassandraSettings(BaseSettings):
    """Cassandra backend configuration"""

    hosts: List[str] = Field(default=["localhost"], description="Cassandra contact points")
    port: int = Field(default=9042, ge=1, le=65535)
    keyspace: str = Field(
        default="james_keyspace",
        pattern=r"^[A-Za-z][A-Za-z0-9_]{0,47}$",
        description="Keyspace holding dead letters",
    )
    replication_factor: int = Field(default=1, ge=1, le=10)
    create_keyspace: bool = Field(default=True, description="Create keyspace and tables on startup")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    ssl_enabled: bool = Field(default=False)
    ssl_ca_cert: Optional[str] = Field(default=None)
    request_timeout_seconds: float = Field(default=10.0, gt=0, le=600)

    model_config = SettingsConfigDict(env_prefix="DEAD_LETTERS_CASSANDRA_")


class PostgresSettings(BaseSettings):
    """Postgres backend configuration"""

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="james", description="Database holding dead letters")
    schema_name: str = Field(default="public", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    ssl_mode: str = Field(default="prefer", pattern="^(disable|prefer|require|verify-ca|verify-full)$")
    create_tables: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="DEAD_LETTERS_POSTGRES_")

    @property
    def connection_url(self) -> str:
        """libpq connection URL built from the individual fields"""
        credentials = ""
        if self.username:
            credentials = self.username
            if self.password:
                credentials += f":{self.password}"
            credentials += "@"
        return (
            f"postgresql://{credentials}{self.host}:{self.port}/{self.database}"
            f"?sslmode={self.ssl_mode}"
        )


class ObservabilitySettings(BaseSettings):
    """Metrics, logging, tracing and health configuration"""

    metrics_enabled: bool = Field(default=True)
    metrics_port: int = Field(default=9090, ge=1024, le=65535)
    health_check_port: int = Field(default=8080, ge=1024, le=65535)
    health_check_interval_seconds: int = Field(default=30, ge=1, le=3600)
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="json", pattern="^(json|console)$")
    enable_tracing: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="DEAD_LETTERS_")


class DeadLettersSettings(BaseSettings):
    """Complete dead letter store configuration"""

    backend: Literal["memory", "cassandra", "postgres"] = Field(
        default="memory", description="Storage backend"
    )
    cassandra: CassandraSettings = Field(default_factory=CassandraSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_prefix="DEAD_LETTERS_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
