"""Runtime configuration for the CLI and MCP server.

Reads Todoist connection settings from CLI args, environment variables,
.env files, YAML config fallbacks, and finally the settings blob.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config >
    settings blob (token only) > Built-in defaults

Environment variables:
    TODOIST_API_TOKEN: Todoist API token (required unless stored in settings)
    TODOIST_VAULT: Vault root directory (required)
    TODOIST_SETTINGS_FILE: Settings blob path
        (default: <vault>/.todoist_vault_sync/settings.json)
    TODOIST_BASE_URL: API base URL (default: https://api.todoist.com)
    TODOIST_TIMEOUT: Request timeout in seconds (default: 30)
    TODOIST_MAX_RETRIES: Retries for transient failures (default: 2)
    TODOIST_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .sync.state import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.todoist.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 2


@dataclass
class Config:
    api_token: str
    vault_path: str
    settings_file: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.settings_file and self.vault_path:
            self.settings_file = str(default_settings_file(self.vault_path))


def default_settings_file(vault_path: str | Path) -> Path:
    """Return the conventional settings blob location inside a vault."""
    return Path(vault_path) / ".todoist_vault_sync" / "settings.json"


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: If the token is empty, the vault is missing, the base
            URL is malformed, or a numeric field is out of range.
    """
    config.base_url = config.base_url.strip()
    if not config.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid base URL '{config.base_url}': must start with http:// or https://"
        )
    if not urlparse(config.base_url).hostname:
        raise ValueError(
            f"Invalid base URL '{config.base_url}': URL must include a hostname"
        )
    config.base_url = config.base_url.removesuffix("/")

    if not config.api_token.strip():
        raise ValueError(
            "Todoist API token cannot be empty. Set TODOIST_API_TOKEN environment variable."
        )

    if not config.vault_path.strip():
        raise ValueError(
            "Vault path cannot be empty. Set TODOIST_VAULT environment variable."
        )
    if not Path(config.vault_path).is_dir():
        raise ValueError(
            f"Vault path '{config.vault_path}' is not a directory"
        )

    if config.timeout <= 0:
        raise ValueError(
            f"Invalid timeout {config.timeout}: must be greater than 0"
        )

    if not (0 <= config.max_retries <= 10):
        raise ValueError(
            f"Invalid max_retries {config.max_retries}: must be between 0 and 10"
        )


def _get_bool_env(key: str) -> bool | None:
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_number_env(key: str, cast: type) -> float | int | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number"
        ) from None


def resolve_vault_paths(
    vault_path: str | None = None,
    settings_file: str | None = None,
    yaml_fallbacks: dict | None = None,
) -> tuple[str, str]:
    """Resolve the vault root and settings blob path without a token.

    Used on its own by commands that never talk to Todoist.

    Returns:
        Tuple of (vault_path, settings_file).

    Raises:
        ValueError: If no source supplies a vault path.
    """
    fb = yaml_fallbacks or {}

    final_vault = vault_path or os.getenv("TODOIST_VAULT") or fb.get("vault_path")
    if not final_vault:
        raise ValueError(
            "Vault path not found. Set TODOIST_VAULT environment variable, "
            "pass --vault, or add 'vault.path' to config.yml."
        )
    final_vault = str(Path(final_vault).expanduser())

    final_settings = (
        settings_file
        or os.getenv("TODOIST_SETTINGS_FILE")
        or fb.get("settings_file")
        or str(default_settings_file(final_vault))
    )
    return final_vault, final_settings


def load_config(
    api_token: str | None = None,
    vault_path: str | None = None,
    settings_file: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        api_token: Override API token (CLI).
        vault_path: Override vault root (CLI).
        settings_file: Override settings blob path (CLI).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened YAML values from
            ``UnifiedConfig.fallbacks()``.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the vault or token cannot be resolved from any
            source, or a value is invalid.
    """
    fb = yaml_fallbacks or {}
    final_vault, final_settings = resolve_vault_paths(
        vault_path, settings_file, fb
    )

    token = api_token or os.getenv("TODOIST_API_TOKEN") or fb.get("api_token")
    if not token:
        token = SettingsStore(Path(final_settings)).load().key
    if not token:
        raise ValueError(
            "Todoist API token not found. Set TODOIST_API_TOKEN environment variable, "
            "pass --token, add 'todoist.api_token' to config.yml, "
            "or store it with 'settings set key <token>'."
        )

    base_url = os.getenv("TODOIST_BASE_URL") or fb.get("base_url") or DEFAULT_BASE_URL

    timeout = _get_number_env("TODOIST_TIMEOUT", float)
    if timeout is None:
        timeout = float(fb.get("timeout", DEFAULT_TIMEOUT))

    max_retries = _get_number_env("TODOIST_MAX_RETRIES", int)
    if max_retries is None:
        max_retries = int(fb.get("max_retries", DEFAULT_MAX_RETRIES))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("TODOIST_DEBUG")
        final_debug = (
            env_debug if env_debug is not None else bool(fb.get("debug", False))
        )

    config = Config(
        api_token=token.strip(),
        vault_path=final_vault,
        settings_file=final_settings,
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
        debug=final_debug,
    )

    validate_config(config)

    return config
