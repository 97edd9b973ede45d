"""
Factory for creating payout providers based on configuration.
"""
import logging

from paywall_ledger.services.payouts.base import PayoutProvider
from paywall_ledger.services.payouts.providers.log import LogPayoutProvider
from paywall_ledger.services.payouts.providers.webhook import WebhookPayoutProvider

logger = logging.getLogger(__name__)


class PayoutProviderFactory:
    """Factory for creating payout providers."""

    PROVIDERS = {
        "log": LogPayoutProvider,
        "webhook": WebhookPayoutProvider,
    }

    @classmethod
    def create(cls, provider_name: str, config: dict) -> PayoutProvider:
        """
        Create provider instance by name.

        Raises:
            ValueError: If provider name is unknown
        """
        provider_class = cls.PROVIDERS.get(provider_name.lower())
        if not provider_class:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Unknown payout provider: {provider_name}. "
                f"Available providers: {available}"
            )

        provider = provider_class(config)
        if not provider.is_available():
            logger.warning(f"Payout provider {provider_name} created but not fully configured")
        return provider

    @classmethod
    def create_from_settings(cls, settings) -> PayoutProvider:
        provider_name = settings.payout_provider
        if provider_name == "webhook":
            config = {
                "url": settings.payout_webhook_url,
                "secret": settings.payout_webhook_secret,
                "timeout": settings.payout_webhook_timeout,
            }
        else:
            config = {}
        return cls.create(provider_name, config)
