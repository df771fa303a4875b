"""Settings resolution and service credential lookup."""

import json, logging, os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir

from bookcovers.errors import ConfigError, CredentialMissing


APP_NAME = "bookcovers"
APP_AUTHOR = "bookcovers"
CONFIG_FILE_NAME = "config.json"

# Logical service name -> environment variable holding its project id.
CREDENTIAL_ENV_VARS = {
    "ledger": "CARDANO_PROJECT_ID",
    "gateway": "IPFS_PROJECT_ID",
}

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Endpoints, target chain and sampling window for one run."""

    registry_url: str = "https://api.book.io/api/v0/collections"
    assets_url: str = "https://cardano-mainnet.blockfrost.io/api/v0/assets/"
    assets_policy_url: str = "https://cardano-mainnet.blockfrost.io/api/v0/assets/policy/"
    gateway_url: str = "https://ipfs.blockfrost.io/api/v0/ipfs/gateway/"
    target_chain: str = "cardano"
    sample_offset: int = 1
    sample_count: int = 10
    timeout: float = 60.0

    def __post_init__(self):
        if self.sample_offset < 0:
            raise ConfigError(f"sample_offset must be >= 0, got {self.sample_offset}")
        if self.sample_count < 1:
            raise ConfigError(f"sample_count must be >= 1, got {self.sample_count}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if not self.target_chain:
            raise ConfigError("target_chain cannot be empty")


def get_config_dir() -> Path:
    """Return the platform user config directory (not created)."""
    return Path(user_config_dir(APP_NAME, APP_AUTHOR))


def default_config_path() -> Path:
    """Return the default settings file location."""
    return get_config_dir() / CONFIG_FILE_NAME


def _coerce_field(name: str, expected_type: type, value):
    """Validate one settings value against the dataclass field type."""
    if expected_type is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if expected_type is int and isinstance(value, bool):
        raise ConfigError(f"setting '{name}' must be int, got bool")
    if not isinstance(value, expected_type):
        raise ConfigError(f"setting '{name}' must be {expected_type.__name__}, got {type(value).__name__}")
    return value


def _read_config_file(config_fp: Path) -> dict:
    """Load a JSON settings file into a plain dictionary."""
    try:
        payload = json.loads(config_fp.read_text(encoding="utf-8"))
    except OSError as err:
        raise ConfigError(f"unable to read config file {config_fp} ({err})") from err
    except json.JSONDecodeError as err:
        raise ConfigError(f"config file {config_fp} is not valid JSON ({err})") from err
    if not isinstance(payload, dict):
        raise ConfigError(f"config file {config_fp} must contain a JSON object")
    return payload


def load_settings(config_fp: str | Path | None = None, **overrides) -> Settings:
    """Resolve settings from defaults, an optional JSON file, then explicit overrides.

    When ``config_fp`` is None the platform default file is read only if it exists;
    an explicit path that does not exist is an error. Overrides whose value is None
    are ignored so CLI flags can be passed through unconditionally.
    """
    field_types = {f.name: type(f.default) for f in fields(Settings)}

    if config_fp is not None:
        config_path = Path(config_fp).expanduser().resolve()
        if not config_path.exists():
            raise ConfigError(f"config file does not exist: {config_path}")
    else:
        config_path = default_config_path()

    values: dict = {}
    if config_path.exists():
        log.debug(f"loading settings from\n    {config_path}")
        values.update(_read_config_file(config_path))
    values.update({k: v for k, v in overrides.items() if v is not None})

    # Reject unknown keys before building the frozen record.
    unknown = sorted(set(values) - set(field_types))
    if unknown:
        raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")
    coerced = {name: _coerce_field(name, field_types[name], value) for name, value in values.items()}
    return replace(Settings(), **coerced)


class EnvCredentialProvider:
    """Resolve per-service credentials from environment variables."""

    def __init__(self, env_vars: dict[str, str] | None = None, environ=None):
        self.env_vars = dict(CREDENTIAL_ENV_VARS if env_vars is None else env_vars)
        self.environ = os.environ if environ is None else environ

    def get(self, service: str) -> str:
        """Return the credential for a logical service or raise CredentialMissing."""
        assert service in self.env_vars, f"unknown credential service '{service}'"
        env_var = self.env_vars[service]
        token = self.environ.get(env_var)
        if not token:
            raise CredentialMissing(service, env_var)
        log.debug(f"using {service} credential from ${env_var}")
        return token
