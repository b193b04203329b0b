"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    url: Optional[str] = Field(None, description="Full connection URL (overrides the fields below)")
    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("gator", description="Database name")
    user: str = Field("gator", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(
        "GATOR_DB_PASSWORD", description="Environment variable for password"
    )


class AggregatorConfig(BaseModel):
    """Feed aggregation settings."""

    user_agent: str = Field("gator", description="User-Agent sent with feed requests")
    timeout: Optional[float] = Field(None, description="Fetch timeout in seconds", gt=0)
    max_in_flight: int = Field(1, description="Maximum concurrent scrape iterations", ge=1, le=32)


class BrowseConfig(BaseModel):
    """Defaults for the browse command."""

    default_limit: int = Field(2, description="Posts shown when no limit is given", ge=1)


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    current_user_name: Optional[str] = Field(None, description="Name of the logged in user")
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    browse: BrowseConfig = Field(default_factory=BrowseConfig)
