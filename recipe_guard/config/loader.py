"""
Configuration management and loading.

Secrets come from the environment; tunable generation limits come from an
optional YAML file validated strictly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from ..core.errors import ConfigError
from ..core.rate_limit import RateLimitPolicy

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
CONFIG_PATH_ENV = "RECIPE_GUARD_CONFIG"


@dataclass(frozen=True)
class ServiceSecrets:
    """Credentials and endpoints the function cannot run without."""
    backend_url: str
    backend_key: str
    openai_api_key: str
    openai_model: str = DEFAULT_OPENAI_MODEL


@dataclass(frozen=True)
class GenerationPolicy:
    """Limits applied to every generation request."""
    rate_limit_window_minutes: int = 15
    rate_limit_max_requests: int = 12
    completion_timeout_seconds: float = 20.0
    backend_timeout_seconds: float = 10.0
    temperature: float = 0.7
    max_recipes: int = 3
    min_ingredients: int = 3

    def __post_init__(self):
        """Validate limits are positive."""
        for name in (
            "rate_limit_window_minutes",
            "rate_limit_max_requests",
            "completion_timeout_seconds",
            "backend_timeout_seconds",
            "max_recipes",
            "min_ingredients",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")

    def rate_limit_policy(self) -> RateLimitPolicy:
        return RateLimitPolicy(
            max_requests=self.rate_limit_max_requests,
            window_minutes=self.rate_limit_window_minutes,
        )


_INT_KEYS = {
    "rate_limit_window_minutes",
    "rate_limit_max_requests",
    "max_recipes",
    "min_ingredients",
}
_FLOAT_KEYS = {
    "completion_timeout_seconds",
    "backend_timeout_seconds",
    "temperature",
}


def load_service_secrets(env: Optional[Mapping[str, str]] = None) -> ServiceSecrets:
    """Read secrets from the environment.

    Args:
        env: Mapping to read from (defaults to ``os.environ``)

    Returns:
        ServiceSecrets with every required value present

    Raises:
        ConfigError: Naming the missing variables
    """
    env = os.environ if env is None else env
    backend_url = (env.get("SUPABASE_URL") or "").strip()
    backend_key = (env.get("SUPABASE_ANON_KEY") or "").strip()
    openai_key = (env.get("OPENAI_API_KEY") or "").strip()

    if not backend_url or not backend_key:
        raise ConfigError("Missing SUPABASE_URL or SUPABASE_ANON_KEY secret")
    if not openai_key:
        raise ConfigError("Missing OPENAI_API_KEY secret")

    return ServiceSecrets(
        backend_url=backend_url,
        backend_key=backend_key,
        openai_api_key=openai_key,
        openai_model=(env.get("OPENAI_MODEL") or "").strip() or DEFAULT_OPENAI_MODEL,
    )


def load_generation_policy(path: Optional[str] = None) -> GenerationPolicy:
    """Load and validate the generation policy from a YAML file.

    Without a path, ``RECIPE_GUARD_CONFIG`` is consulted; if that is unset
    too, defaults apply.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated GenerationPolicy

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    path = path or os.environ.get(CONFIG_PATH_ENV)
    if not path:
        return GenerationPolicy()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Generation config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    unknown_keys = set(raw_config.keys()) - {'generation'}
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'generation' not in raw_config:
        raise ValueError("Missing required 'generation' section")

    data = raw_config['generation']
    if not isinstance(data, dict):
        raise ValueError("'generation' must be a dictionary")

    unknown = set(data.keys()) - _INT_KEYS - _FLOAT_KEYS
    if unknown:
        raise ValueError(f"Unknown keys in generation: {unknown}")

    values = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' in generation must be a number")
        if key in _INT_KEYS:
            if not isinstance(value, int):
                raise ValueError(f"'{key}' in generation must be an integer")
            values[key] = value
        else:
            values[key] = float(value)

    return GenerationPolicy(**values)
