"""
Configuration loader for the Inferenco MCP server.

Loads settings from config.yaml, then applies INFERENCO_MCP_* environment
variables on top. The entry point loads .env before calling load_config(),
so deployments can keep API keys out of the YAML file.
Never log secrets (API keys).
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_PORT = 8080
ENV_PREFIX = "INFERENCO_MCP_"


class ServerConfig(BaseModel):
    """Configuration for transport selection and the HTTP listener."""

    transport: str = Field(default="stdio", description="Transport to serve on (stdio|http)")
    host: str = Field(default="0.0.0.0", description="Host to bind the HTTP transport to")
    port: int = Field(default=DEFAULT_PORT, description="Port for the HTTP transport")


class AuthConfig(BaseModel):
    """API key authentication for the HTTP transport."""

    enabled: bool = Field(default=False, description="Require an API key on HTTP endpoints")
    header: str = Field(default="x-api-key", description="Header carrying the API key")
    api_keys: List[str] = Field(default_factory=list, description="Accepted API keys")


class SSEConfig(BaseModel):
    """Timing for the Server-Sent Events stream."""

    keepalive_interval: float = Field(
        default=30.0, gt=0, description="Keepalive comment interval (s)"
    )
    heartbeat_interval: float = Field(
        default=15.0, gt=0, description="Heartbeat comment interval (s)"
    )


class DocsConfig(BaseModel):
    """Settings for the document fetch tool."""

    base_url: str = Field(
        default="https://docs.inferenco.com", description="Fixed origin documents are fetched from"
    )
    max_chars: int = Field(default=4000, description="Maximum characters of extracted text")
    timeout: float = Field(default=15.0, description="Outbound request timeout in seconds")


class Config(BaseModel):
    """Main configuration object."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    sse: SSEConfig = Field(default_factory=SSEConfig)
    docs: DocsConfig = Field(default_factory=DocsConfig)
    log_level: str = Field(default="INFO", description="Logging level")
    enable_pretty_print: bool = Field(
        default=False, description="Enable custom pretty print for debugging"
    )
    save_to_file: bool = Field(default=False, description="Save logs to file")
    log_file_path: str = Field(default="server.log", description="Log file path (relative to root)")
    max_log_file_size: int = Field(
        default=10485760, description="Max log file size in bytes (10MB)"
    )
    backup_count: int = Field(default=5, description="Number of backup log files to keep")


def parse_api_keys(raw: str) -> List[str]:
    """Split a comma-separated key list, dropping blanks."""
    return [key.strip() for key in raw.split(",") if key.strip()]


def _parse_port(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_PORT


def _apply_environment(config_data: Dict[str, Any], environ: Mapping[str, str]) -> None:
    """Overlay INFERENCO_MCP_* variables onto the YAML data."""
    for section in ("server", "auth", "docs"):
        config_data[section] = config_data.get(section) or {}
    server, auth, docs = config_data["server"], config_data["auth"], config_data["docs"]

    if f"{ENV_PREFIX}TRANSPORT" in environ:
        server["transport"] = environ[f"{ENV_PREFIX}TRANSPORT"].strip().lower()
    if f"{ENV_PREFIX}HOST" in environ:
        server["host"] = environ[f"{ENV_PREFIX}HOST"]
    if f"{ENV_PREFIX}PORT" in environ:
        server["port"] = _parse_port(environ[f"{ENV_PREFIX}PORT"])

    if f"{ENV_PREFIX}AUTH_ENABLED" in environ:
        auth["enabled"] = environ[f"{ENV_PREFIX}AUTH_ENABLED"].strip().lower() == "true"
    if f"{ENV_PREFIX}AUTH_HEADER" in environ:
        auth["header"] = environ[f"{ENV_PREFIX}AUTH_HEADER"]
    if f"{ENV_PREFIX}API_KEYS" in environ:
        auth["api_keys"] = parse_api_keys(environ[f"{ENV_PREFIX}API_KEYS"])

    if f"{ENV_PREFIX}DOCS_BASE_URL" in environ:
        docs["base_url"] = environ[f"{ENV_PREFIX}DOCS_BASE_URL"]

    if "LOG_LEVEL" in environ:
        config_data["log_level"] = environ["LOG_LEVEL"]


def load_config(
    config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> Config:
    """
    Load configuration from YAML file and environment.

    Args:
        config_path: Path to config.yaml file. Defaults to ./config.yaml
        environ: Environment mapping. Defaults to os.environ

    Returns:
        Loaded configuration object
    """
    if config_path is None:
        config_path = Path("config.yaml")
    if environ is None:
        environ = os.environ

    config_data: Dict[str, Any] = {}

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # Handle nested logging configuration
    if "logging" in config_data:
        logging_config = config_data.pop("logging") or {}
        if "level" in logging_config:
            config_data["log_level"] = logging_config["level"]
        for key in (
            "enable_pretty_print",
            "save_to_file",
            "log_file_path",
            "max_log_file_size",
            "backup_count",
        ):
            if key in logging_config:
                config_data[key] = logging_config[key]

    _apply_environment(config_data, environ)

    # YAML may list keys as a single comma-separated string
    api_keys = config_data["auth"].get("api_keys")
    if isinstance(api_keys, str):
        config_data["auth"]["api_keys"] = parse_api_keys(api_keys)

    return Config(**config_data)
