"""Configuration resolved once at startup from the environment and dotenv files."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# Searched in order in the working directory when no env file is given
DEFAULT_ENV_FILES = (".env.local", ".env")

DEFAULT_PRIMARY_PROVIDER = "sambanova"
DEFAULT_SAMBANOVA_BASE_URL = "https://api.sambanova.ai/v1"
DEFAULT_AWS_REGION = "us-east-1"

# Environment variable holding the model override for each provider
MODEL_ENV_VARS = {
    "sambanova": "SAMBANOVA_AI_MODEL",
    "bedrock": "AWS_BEDROCK_AI_MODEL",
    "openai": "OPENAI_AI_MODEL",
    "anthropic": "ANTHROPIC_AI_MODEL",
    "google": "GOOGLE_AI_MODEL",
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _provider_id(value: Optional[str]) -> Optional[str]:
    value = _clean(value)
    return value.lower() if value else None


def scan_indexed_keys(env: Mapping[str, str], name: str) -> tuple[str, ...]:
    """Collect ``NAME``, ``NAME_2``, ``NAME_3``... stopping at the first gap.

    Blank values count as missing. ``NAME`` itself is optional; the
    numbered scan always starts at 2.
    """
    keys = []

    first = _clean(env.get(name))
    if first:
        keys.append(first)

    index = 2
    while True:
        value = _clean(env.get(f"{name}_{index}"))
        if not value:
            break
        keys.append(value)
        index += 1

    return tuple(keys)


def _freeze_overrides(
    overrides: Union[Mapping[str, str], Iterable[tuple[str, str]]],
) -> tuple[tuple[str, str], ...]:
    pairs = overrides.items() if isinstance(overrides, Mapping) else overrides
    frozen = {}
    for provider, model in pairs:
        provider, model = _provider_id(provider), _clean(model)
        if provider and model:
            frozen[provider] = model
    return tuple(sorted(frozen.items()))


@dataclass(frozen=True)
class Settings:
    """Everything the analyzer needs to know about providers.

    Built once and passed explicitly; nothing re-reads the environment
    per request.
    """

    primary_provider: str = DEFAULT_PRIMARY_PROVIDER
    fallback_provider: Optional[str] = None
    disabled_providers: frozenset = frozenset()
    # (provider, model) pairs, sorted by provider id
    model_overrides: tuple[tuple[str, str], ...] = ()

    sambanova_api_keys: tuple[str, ...] = ()
    sambanova_base_url: str = DEFAULT_SAMBANOVA_BASE_URL

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    aws_region: str = DEFAULT_AWS_REGION

    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    google_api_key: Optional[str] = None

    def __post_init__(self):
        # Provider ids are matched against lowercase registry keys
        object.__setattr__(
            self, "primary_provider", _provider_id(self.primary_provider) or DEFAULT_PRIMARY_PROVIDER
        )
        object.__setattr__(self, "fallback_provider", _provider_id(self.fallback_provider))
        object.__setattr__(
            self,
            "disabled_providers",
            frozenset(p for p in (_provider_id(p) for p in self.disabled_providers) if p),
        )
        object.__setattr__(self, "model_overrides", _freeze_overrides(self.model_overrides))

    def model_for(self, provider: str, default: str) -> str:
        """Model override for a provider, or its default."""
        return dict(self.model_overrides).get(provider.lower()) or default

    def is_enabled(self, provider: str) -> bool:
        return provider.lower() not in self.disabled_providers

    @classmethod
    def from_mapping(cls, env: Mapping[str, str]) -> "Settings":
        """Build settings from any key/value mapping.

        Args:
            env: Environment-style mapping (e.g. ``os.environ`` or a dict)

        Returns:
            Resolved Settings
        """
        disabled = frozenset(
            part.strip().lower()
            for part in (env.get("AI_DISABLED_PROVIDERS") or "").split(",")
            if part.strip()
        )

        overrides = {}
        for provider, var in MODEL_ENV_VARS.items():
            model = _clean(env.get(var))
            if model:
                overrides[provider] = model

        return cls(
            primary_provider=_provider_id(env.get("AI_PROVIDER")) or DEFAULT_PRIMARY_PROVIDER,
            fallback_provider=_provider_id(env.get("AI_FALLBACK_PROVIDER")),
            disabled_providers=disabled,
            model_overrides=overrides,
            sambanova_api_keys=scan_indexed_keys(env, "SAMBANOVA_API_KEY"),
            sambanova_base_url=_clean(env.get("SAMBANOVA_BASE_URL")) or DEFAULT_SAMBANOVA_BASE_URL,
            aws_access_key_id=_clean(env.get("AWS_ACCESS_KEY_ID")),
            aws_secret_access_key=_clean(env.get("AWS_SECRET_ACCESS_KEY")),
            aws_session_token=_clean(env.get("AWS_SESSION_TOKEN")),
            aws_region=_clean(env.get("AWS_DEFAULT_REGION")) or DEFAULT_AWS_REGION,
            openai_api_key=_clean(env.get("OPENAI_API_KEY")),
            anthropic_api_key=_clean(env.get("ANTHROPIC_API_KEY")),
            google_api_key=_clean(env.get("GOOGLE_API_KEY")) or _clean(env.get("GEMINI_API_KEY")),
        )


def read_env_files(env_file: Optional[Path] = None) -> dict[str, str]:
    """Read dotenv files into a dict.

    An explicit ``env_file`` is used alone. Otherwise ``.env.local`` and
    ``.env`` in the working directory are read, ``.env.local`` winning.
    """
    if env_file is not None:
        path = Path(env_file).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Env file not found: {env_file}")
        candidates = [path]
    else:
        candidates = [Path.cwd() / name for name in DEFAULT_ENV_FILES]

    values: dict[str, str] = {}
    # Lowest priority first so later updates win
    for path in reversed(candidates):
        if path.exists():
            loaded = {k: v for k, v in dotenv_values(path).items() if v is not None}
            logger.debug(f"Loaded {len(loaded)} values from {path}")
            values.update(loaded)

    return values


def load_settings(
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve settings from dotenv files and the process environment.

    Process environment values win over file values.

    Args:
        env_file: Explicit dotenv file (default: .env.local / .env in cwd)
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Resolved Settings
    """
    merged = read_env_files(env_file)
    merged.update(os.environ if environ is None else environ)
    return Settings.from_mapping(merged)
