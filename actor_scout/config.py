"""
Configuration management for Actor Scout settings and command-line arguments.
"""

import argparse
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Transport(str, Enum):
    STDIO = "stdio"
    SSE = "sse"
    STREAMABLE_HTTP = "streamable-http"


class Config(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True)

    host: str = Field("0.0.0.0", alias="MCP_HOST", description="Host to bind")
    port: int = Field(8000, alias="MCP_PORT", description="Port to listen on")
    transport: Transport = Field(
        Transport.STREAMABLE_HTTP,
        description=f"Transport protocol, allowed: {[t.value for t in Transport]}"
    )
    log_level: str = Field('INFO', description="Logging level",
                           examples=["CRITICAL", "FATAL", "ERROR", "WARNING", "INFO", "DEBUG"])
    APIFY_TOKEN: str = Field(min_length=1,
                             description="Apify API token, also used to authorize the LLM proxy")
    LLM_BASE_URL: str = Field(default="https://openrouter.apify.actor/api/v1",
                              description="OpenAI compatible base URL")
    LLM_API_KEY: Optional[str] = Field(
        default=None, description="API key for LLM_BASE_URL. When unset the Apify token is used")
    EVALUATION_MODEL: str = Field(default="google/gemini-2.5-flash",
                                  description="Model used to score candidates")
    EVALUATION_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=2.0)
    SEARCH_TERMS_MODEL: Optional[str] = Field(
        default=None, description="Model used to extract search terms (default: EVALUATION_MODEL)")
    SYNTHESIS_MODEL: str = Field(default="google/gemma-3-27b-it:free",
                                 description="Model used to generate candidate input")
    MAX_ACTORS: int = Field(default=3, ge=1, description="Number of candidates to test-run")
    RUN_TIMEOUT_SECS: int = Field(default=120, ge=1, description="Timeout of one candidate run")
    RUN_MEMORY_MBYTES: int = Field(default=1024, ge=128, description="Memory of one candidate run")
    DETAIL_FETCH_TIMEOUT_SECS: float = Field(default=30.0, gt=0,
                                             description="Timeout for store page requests")

    @field_validator("transport")
    def reject_sse(cls, v):
        if v == Transport.SSE:
            raise ValueError("SSE transport not supported")
        return v


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse MCP server command line arguments."""
    parser = argparse.ArgumentParser(description="Actor Scout MCP Server")

    # Transport options
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http"],
        help="Transport protocol to use",
    )

    # HTTP transport configuration
    parser.add_argument(
        "--host",
        help="Host to bind to for HTTP transports (default: 0.0.0.0, env: MCP_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on for HTTP transports",
    )

    # Optional log level
    parser.add_argument(
        "--log-level",
        help="Logging level",
    )

    args = parser.parse_args(argv)

    return args


def get_config(argv: Optional[List[str]] = None) -> Config:
    args = parse_args(argv)
    # Only include CLI values that are actually set
    cli_overrides = {k: v for k, v in vars(args).items() if v is not None}
    # Aliased fields go in by alias so they win over the same variable in the environment
    aliases = {name: field.alias for name, field in Config.model_fields.items() if field.alias}
    return Config(**{aliases.get(k, k): v for k, v in cli_overrides.items()})
