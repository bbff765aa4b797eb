"""Configuration for the resource prototype."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GraphConfig(BaseModel):
    """Resource graph configuration."""

    scale: Literal["mini", "small", "medium", "medplus", "large", "largest"] = Field(
        default="mini", description="Scale tier of the generated test resource graph"
    )


class MatcherConfig(BaseModel):
    """Matcher configuration."""

    name: str = Field(default="CA", min_length=1, description="Matcher policy name")
    deadline_seconds: float | None = Field(
        default=None, gt=0, description="Abort the walk once this many seconds have elapsed"
    )


class ExportConfig(BaseModel):
    """Filtered graph export configuration."""

    format: Literal["dot", "graphml", "cypher"] = Field(default="dot")
    basename: str = Field(default="", description="Output basename; empty disables export")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")
    otel_endpoint: str | None = Field(default=None)
    trace_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0, description="Fraction of root spans kept")
    environment: str = Field(default="development")


class Config(BaseSettings):
    """Main configuration."""

    model_config = SettingsConfigDict(env_prefix="RESOURCE_PROTO_", env_nested_delimiter="__")

    graph: GraphConfig = Field(default_factory=GraphConfig)
    matcher: MatcherConfig = Field(default_factory=MatcherConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    return Config()
