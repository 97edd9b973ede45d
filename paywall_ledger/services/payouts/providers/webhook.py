"""
Webhook provider: POST инструкции выплаты во внешний платёжный сервис.

Тело подписывается HMAC-SHA256 (заголовок X-Signature). Любой не-2xx ответ или
транспортная ошибка = выплата не состоялась. Вызовы идут через circuit breaker.
"""
import hashlib
import hmac
import json
import logging

import httpx
import pybreaker

from paywall_ledger.services.circuit_breaker import get_circuit_breaker
from paywall_ledger.services.payouts.base import (
    PayoutError,
    PayoutProvider,
    PayoutRequest,
    PayoutResult,
)

logger = logging.getLogger(__name__)


class WebhookPayoutProvider(PayoutProvider):
    name = "webhook"

    def __init__(self, config: dict, client: httpx.Client | None = None) -> None:
        super().__init__(config)
        self.url = config.get("url") or ""
        self.secret = config.get("secret") or ""
        self.timeout = float(config.get("timeout") or 10.0)
        self._client = client
        self._breaker = config.get("breaker") or get_circuit_breaker("payout_provider")

    def is_available(self) -> bool:
        return bool(self.url)

    def payout(self, request: PayoutRequest) -> PayoutResult:
        if not self.is_available():
            raise PayoutError("webhook payout provider is not configured")
        try:
            return self._breaker.call(self._send, request)
        except pybreaker.CircuitBreakerError as e:
            raise PayoutError("payout circuit breaker is open", {"breaker": "payout_provider"}) from e

    def sign(self, body: bytes) -> str:
        return hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def _send(self, request: PayoutRequest) -> PayoutResult:
        body = json.dumps(
            {
                "recipient": request.recipient,
                "amount": request.amount,
                "kind": request.kind,
                "reference": request.reference,
                "metadata": request.metadata,
            },
            sort_keys=True,
        ).encode("utf-8")
        headers = {"Content-Type": "application/json", "Idempotency-Key": request.reference}
        if self.secret:
            headers["X-Signature"] = self.sign(body)

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(
                "payout_webhook_transport_error",
                extra={"recipient": request.recipient, "kind": request.kind, "error": str(e)},
            )
            raise PayoutError(f"payout webhook transport error: {e}") from e
        finally:
            if self._client is None:
                client.close()

        if not response.is_success:
            raise PayoutError(
                f"payout webhook returned {response.status_code}",
                {"status_code": response.status_code},
            )

        # 2xx = выплата уже состоялась; разбор тела больше не может её отменить
        return PayoutResult(
            success=True,
            provider=self.name,
            provider_reference=self._provider_reference(response),
        )

    @staticmethod
    def _provider_reference(response: httpx.Response) -> str | None:
        try:
            data = response.json()
        except ValueError:
            return None  # тело без JSON: id у провайдера нет
        if not isinstance(data, dict):
            return None
        reference = data.get("id")
        return str(reference) if reference is not None else None
