"""Extraction provider registry.

Providers are looked up by the name configured in
`settings.extraction_provider`. Additional providers (for example a
layout-aware model) can be registered at startup without touching the
API code.
"""

import logging

from nebenkosten.extraction.base import ExtractionProvider
from nebenkosten.extraction.heuristic_provider import HeuristicExtractionProvider
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Name to class mapping of bill extraction providers."""

    _providers: dict[str, type[ExtractionProvider]] = {
        "heuristic": HeuristicExtractionProvider,
    }

    @classmethod
    def register(cls, name: str, provider_class: type[ExtractionProvider]) -> None:
        cls._providers[name] = provider_class
        logger.info(f"Extraction provider '{name}' registered")

    @classmethod
    def get_provider_class(cls, name: str) -> type[ExtractionProvider]:
        """Look up a provider class.

        Raises:
            ValueError: If no provider of that name is registered
        """
        try:
            return cls._providers[name]
        except KeyError:
            known = ", ".join(sorted(cls._providers))
            raise ValueError(
                f"Unknown extraction provider: '{name}'. Available providers: {known}"
            ) from None

    @classmethod
    def list_providers(cls) -> list[str]:
        return sorted(cls._providers)


def create_extraction_service(settings: Settings) -> ExtractionProvider:
    """Instantiate the configured extraction provider.

    Raises:
        ValueError: If the configured provider is unknown
    """
    name = settings.extraction_provider
    provider = ProviderRegistry.get_provider_class(name)(settings)
    if not provider.is_available():
        logger.warning(f"Extraction provider '{name}' reports itself unavailable")
    logger.info(f"Created extraction provider: {name}")
    return provider
