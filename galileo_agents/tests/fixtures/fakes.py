"""Stand-ins for the Galileo logger and the Stripe API used across tests."""

from __future__ import annotations

from typing import Any, Optional


class FakeGalileoLogger:
    """Records the calls the tracing manager makes on the Galileo logger."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, method: str, **kwargs: Any) -> None:
        self.calls.append((method, kwargs))

    def start_trace(self, **kwargs: Any) -> None:
        self._record("start_trace", **kwargs)

    def add_workflow_span(self, **kwargs: Any) -> None:
        self._record("add_workflow_span", **kwargs)

    def add_llm_span(self, **kwargs: Any) -> None:
        self._record("add_llm_span", **kwargs)

    def conclude(self, **kwargs: Any) -> None:
        self._record("conclude", **kwargs)

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def last(self, method: str) -> dict[str, Any]:
        for name, kwargs in reversed(self.calls):
            if name == method:
                return kwargs
        raise AssertionError(f"{method} was never called")


class _Resource:
    """One Stripe resource (Price, Customer, ...) recording create/list/cancel calls."""

    def __init__(self, api: "FakeStripeAPI", name: str, response: dict[str, Any]) -> None:
        self._api = api
        self._name = name
        self.response = response
        self.error: Optional[Exception] = None

    def _respond(self, operation: str, args: tuple, kwargs: dict[str, Any]) -> dict[str, Any]:
        self._api.calls.append((f"{self._name}.{operation}", args, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def create(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return self._respond("create", args, kwargs)

    def list(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return self._respond("list", args, kwargs)

    def cancel(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return self._respond("cancel", args, kwargs)


class FakeStripeAPI:
    """Namespace with the Stripe resources the toolkit uses."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict[str, Any]]] = []
        self.Price = _Resource(self, "Price", {"id": "price_123", "unit_amount": 5000})
        self.PaymentLink = _Resource(
            self, "PaymentLink", {"id": "plink_123", "url": "https://buy.stripe.com/test_123"}
        )
        self.Customer = _Resource(
            self, "Customer", {"id": "cus_123", "email": "ada@example.com", "name": "Ada Lovelace"}
        )
        self.Product = _Resource(
            self,
            "Product",
            {
                "data": [
                    {"id": "prod_1", "name": "Consulting", "description": "Hourly", "active": True},
                    {"id": "prod_2", "name": "Workshop", "description": None, "active": True},
                ]
            },
        )
        self.Subscription = _Resource(
            self, "Subscription", {"id": "sub_123", "status": "active", "customer": "cus_123"}
        )
        self.Refund = _Resource(self, "Refund", {"id": "re_123", "status": "succeeded", "amount": 1500})

    def called(self, name: str) -> list[tuple[tuple, dict[str, Any]]]:
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]


__all__ = ["FakeGalileoLogger", "FakeStripeAPI"]
