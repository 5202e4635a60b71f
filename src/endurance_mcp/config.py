"""
Runtime configuration from environment variables.

Provider OAuth/API settings are read per provider using the
<PROVIDER>_<SETTING> naming scheme (e.g. GARMIN_TOKEN_URL).
In dev mode (DEV_MODE_OAUTH=true) missing provider credentials are
replaced with mock values so the connect/export flow runs locally.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from endurance_mcp.errors import ConfigurationError
from endurance_mcp.sdk.types import Provider

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "/data/endurance"
DEFAULT_ATHLETE_PWA_URL = "http://localhost:5174"

# Public endpoints used when the environment does not override them
PROVIDER_DEFAULTS = {
    Provider.GARMIN: {
        "auth_url": "https://connect.garmin.com/oauthConfirm",
        "token_url": "https://connectapi.garmin.com/oauth-service/oauth/token",
        "api_base_url": "https://connectapi.garmin.com",
    },
    Provider.WAHOO: {},
}

_PROVIDER_SETTINGS = (
    "client_id",
    "client_secret",
    "redirect_uri",
    "auth_url",
    "token_url",
    "api_base_url",
    "token_encryption_key",
)


@dataclass(frozen=True)
class ProviderConfig:
    """OAuth and API settings for one provider."""
    provider: Provider
    client_id: str
    client_secret: str
    redirect_uri: str
    auth_url: str
    token_url: str
    api_base_url: str
    token_encryption_key: str
    mock: bool = False


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    dev_mode_oauth: bool = False
    athlete_pwa_url: str = DEFAULT_ATHLETE_PWA_URL
    max_concurrency_per_provider: int = 4
    export_workers: int = 8
    http_timeout: float = 30.0
    providers: Dict[Provider, Dict[str, Optional[str]]] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ=None) -> "AppConfig":
        env = os.environ if environ is None else environ

        providers = {}
        for provider in Provider:
            prefix = provider.value
            defaults = PROVIDER_DEFAULTS.get(provider, {})
            providers[provider] = {
                name: env.get(f"{prefix}_{name.upper()}") or defaults.get(name)
                for name in _PROVIDER_SETTINGS
            }

        return cls(
            data_dir=Path(env.get("ENDURANCE_DATA_DIR", DEFAULT_DATA_DIR)),
            dev_mode_oauth=env.get("DEV_MODE_OAUTH", "false").lower() == "true",
            athlete_pwa_url=env.get("ATHLETE_PWA_URL", DEFAULT_ATHLETE_PWA_URL),
            max_concurrency_per_provider=int(env.get("EXPORT_MAX_CONCURRENCY", "4")),
            export_workers=int(env.get("EXPORT_WORKERS", "8")),
            http_timeout=float(env.get("PROVIDER_HTTP_TIMEOUT", "30")),
            providers=providers,
        )

    def provider_config(self, provider: Provider) -> ProviderConfig:
        """Resolve the settings for a provider.

        Raises:
            ConfigurationError: If required settings are missing outside dev mode.
        """
        settings = self.providers.get(provider, {})
        prefix = provider.value.lower()

        credentials_missing = not all(
            settings.get(name) for name in ("client_id", "client_secret", "token_encryption_key")
        )
        if self.dev_mode_oauth and credentials_missing:
            logger.warning(f"[DEV MODE] {provider.value} credentials missing, using mock values")
            return ProviderConfig(
                provider=provider,
                client_id=f"mock_{prefix}_client_id",
                client_secret=f"mock_{prefix}_client_secret",
                redirect_uri=settings.get("redirect_uri")
                or f"http://localhost:3000/api/athlete/{prefix}/callback",
                auth_url=settings.get("auth_url") or f"https://mock.{prefix}.com/oauth",
                token_url=settings.get("token_url") or f"https://mock.{prefix}.com/token",
                api_base_url=settings.get("api_base_url") or f"https://mock.{prefix}.com/api",
                token_encryption_key=mock_encryption_key(provider),
                mock=True,
            )

        missing = [name for name in _PROVIDER_SETTINGS if not settings.get(name)]
        if missing:
            env_names = ", ".join(f"{provider.value}_{name.upper()}" for name in missing)
            raise ConfigurationError(
                f"{provider.value} OAuth configuration is incomplete (missing {env_names}). "
                "Set DEV_MODE_OAUTH=true to use mock mode."
            )

        return ProviderConfig(provider=provider, mock=False, **settings)


def mock_encryption_key(provider: Provider) -> str:
    """Deterministic 32-byte key (hex) for dev mode."""
    seed = f"mock_{provider.value.lower()}_encryption_key_32bytes!!"
    return seed.encode("utf-8").hex()[:64]
