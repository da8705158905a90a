import os
from typing import Optional

import core.llm.providers  # noqa: F401  (registers the providers)
from config.models import ModelConfig
from core.contracts.provider import GenerationClient
from core.registry import provider_registry
from utils.errors import AuthenticationError, ProviderError
from utils.logger import logger

PLACEHOLDER_API_KEYS = frozenset({"<PLACE HOLDER FOR YOUR API KEY>", "<YOUR_API_KEY>", "changeme"})


def validate_api_key(key: Optional[str]) -> str:
    """
    Checks that an API key is present and not a placeholder.

    Raises:
        AuthenticationError: If the key is missing, empty or a placeholder.
    """
    if key is None:
        raise AuthenticationError("API key not configured")
    if not key.strip() or key.strip() in PLACEHOLDER_API_KEYS:
        raise AuthenticationError("Invalid or placeholder API key")
    return key


def resolve_api_key(config: ModelConfig) -> Optional[str]:
    """
    Finds the API key for the configured provider: the config first, then the
    provider's environment variable. Returns None for providers that need no key.

    Raises:
        ProviderError: If the provider is unknown.
        AuthenticationError: If the provider needs a key and none is usable.
    """
    try:
        provider_cls = provider_registry.get(config.provider)
    except KeyError:
        raise ProviderError(f"Unknown provider '{config.provider}'. Available providers: {provider_registry.names()}")

    if not getattr(provider_cls, "requires_api_key", True):
        return None
    env_var = getattr(provider_cls, "api_key_env", None)
    key = config.api_key or (os.getenv(env_var) if env_var else None)
    return validate_api_key(key)


def has_usable_credential(config: ModelConfig) -> bool:
    try:
        resolve_api_key(config)
        return True
    except ProviderError as e:
        logger.info(f"Remote generation unavailable for provider '{config.provider}': {e}")
        return False


def get_client(config: ModelConfig) -> GenerationClient:
    """
    Factory function to get a generation client based on the config.

    Raises:
        ProviderError: If the provider is not found or fails to be created.
    """
    try:
        return provider_registry.create(config.provider, config=config)
    except KeyError:
        available = provider_registry.names()
        raise ProviderError(
            f"Unknown provider '{config.provider}'. "
            f"Available providers: {available}"
        )
    except ProviderError:
        raise
    except Exception as e:
        # Catch other potential instantiation errors from the provider's __init__
        raise ProviderError(f"Failed to create provider '{config.provider}': {e}") from e
