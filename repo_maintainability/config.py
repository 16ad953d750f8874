"""
Configuration management for Repository Maintainability Index.

Loads settings from:
1. Environment variables (and a local .env file)
2. .repo-maintainability.toml (local config)
3. pyproject.toml (project-level config)
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Config files are looked up relative to the working directory
PROJECT_ROOT = Path.cwd()

LOCAL_CONFIG_NAME = ".repo-maintainability.toml"
TOOL_SECTION = "repo-maintainability"

# Global configuration for SSL verification
# Default: True (verify SSL certificates)
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

DEFAULT_OBSERVATION_WINDOW_DAYS = 365
DEFAULT_INSIGHT_TIMEOUT = 10.0
DEFAULT_INSIGHT_MODEL = "openai/gpt-oss-20b:free"
DEFAULT_INSIGHT_API_URL = "https://openrouter.ai/api/v1/chat/completions"


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict:
    """
    Return the [tool.repo-maintainability] table.

    Priority:
    1. .repo-maintainability.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)

    Returns:
        The tool table, or an empty dict when neither file defines it.
    """
    for config_path in (PROJECT_ROOT / LOCAL_CONFIG_NAME, PROJECT_ROOT / "pyproject.toml"):
        config = load_config_file(config_path)
        tool_config = config.get("tool", {}).get(TOOL_SECTION)
        if tool_config:
            return tool_config
    return {}


def get_weight_overrides() -> dict[str, float]:
    """
    Load metric weight overrides from configuration files.

    Returns:
        Mapping of metric display name to weight. Empty when not configured.
    """
    weights = get_tool_config().get("weights", {})
    if not isinstance(weights, dict):
        raise ValueError("[tool.repo-maintainability.weights] should be a table.")
    return dict(weights)


def get_observation_window_days() -> int:
    """
    Get the observation window used when collecting commit history.

    Priority:
    1. RMI_OBSERVATION_WINDOW_DAYS environment variable
    2. observation_window_days in config files
    3. Default: 365 days

    Returns:
        Window length in days.
    """
    env_window = os.getenv("RMI_OBSERVATION_WINDOW_DAYS")
    if env_window:
        try:
            return int(env_window)
        except ValueError:
            pass

    tool_config = get_tool_config()
    if "observation_window_days" in tool_config:
        return int(tool_config["observation_window_days"])

    return DEFAULT_OBSERVATION_WINDOW_DAYS


def _get_insight_config() -> dict:
    return get_tool_config().get("insight", {})


def get_insight_timeout() -> float:
    """
    Get the LLM request timeout in seconds.

    Priority:
    1. RMI_INSIGHT_TIMEOUT environment variable
    2. insight.timeout_seconds in config files
    3. Default: 10 seconds
    """
    env_timeout = os.getenv("RMI_INSIGHT_TIMEOUT")
    if env_timeout:
        try:
            return float(env_timeout)
        except ValueError:
            pass

    insight_config = _get_insight_config()
    if "timeout_seconds" in insight_config:
        return float(insight_config["timeout_seconds"])

    return DEFAULT_INSIGHT_TIMEOUT


def get_insight_model() -> str:
    """Get the LLM model (OPENROUTER_MODEL, then config, then default)."""
    env_model = os.getenv("OPENROUTER_MODEL")
    if env_model:
        return env_model
    return _get_insight_config().get("model", DEFAULT_INSIGHT_MODEL)


def get_insight_api_url() -> str:
    """Get the chat completions endpoint of the LLM provider."""
    return _get_insight_config().get("api_url", DEFAULT_INSIGHT_API_URL)


def get_llm_api_key() -> str | None:
    """Get the LLM provider credential. Only ever read from the environment."""
    return os.getenv("OPENROUTER_API_KEY") or None


def get_github_token() -> str | None:
    """Get the GitHub token from the environment, if any."""
    return os.getenv("GITHUB_TOKEN") or None


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """
    Get the current SSL verification setting.

    Returns:
        Whether SSL verification is enabled.
    """
    return VERIFY_SSL
