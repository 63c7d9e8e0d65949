"""
Stripe toolkit

Thin layer over the Stripe SDK that exposes only the actions enabled in
``StripeActionsConfig``. Every API call is reported to Galileo as a tool
span and every SDK failure is re-raised as ``StripeToolError`` with a
"Failed to <action>: <message>" message.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import stripe

from galileo_agents.app.config import StripeActionsConfig, get_settings
from galileo_agents.app.core.exceptions import (
    ConfigurationError,
    StripeToolError,
    ToolkitActionUnavailableError,
)
from galileo_agents.app.core.observability.galileo_logger import log_operation


logger = logging.getLogger(__name__)

# action name -> (config path, label used in "not available" errors)
ACTIONS: dict[str, tuple[tuple[str, str], str]] = {
    "create_payment_link": (("payment_links", "create"), "Payment link"),
    "create_product": (("products", "create"), "Product creation"),
    "list_products": (("products", "list"), "Product listing"),
    "create_customer": (("customers", "create"), "Customer creation"),
    "create_subscription": (("subscriptions", "create"), "Subscription creation"),
    "cancel_subscription": (("subscriptions", "cancel"), "Subscription cancellation"),
    "create_refund": (("refunds", "create"), "Refund"),
}

# toolkit method -> Galileo span name
LOGGED_CALLS = {
    "create_payment_link": "create-payment-link-api-call",
    "create_customer": "create-customer-api-call",
    "list_products": "list-products-api-call",
    "create_subscription": "create-subscription-api-call",
    "cancel_subscription": "cancel-subscription-api-call",
    "create_refund": "create-refund-api-call",
}


def _error_message(exc: Exception) -> str:
    return getattr(exc, "user_message", None) or str(exc) or type(exc).__name__


def _compact(**params: Any) -> dict[str, Any]:
    """Drop unset optional parameters; Stripe rejects explicit nulls."""
    return {key: value for key, value in params.items() if value is not None}


class StripeToolkit:
    """
    Stripe operations gated by an action configuration.

    Args:
        secret_key: Stripe secret key (sk_test_... for development)
        configuration: Enabled actions
        api: Module or namespace providing Price, PaymentLink, Customer,
            Product, Subscription and Refund (the ``stripe`` package by default)

    The API methods are synchronous, like the SDK; callers on the event loop
    run them in a worker thread.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        configuration: Optional[StripeActionsConfig] = None,
        api: Any = stripe,
        default_success_url: Optional[str] = None,
        default_cancel_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key
        self.configuration = configuration or StripeActionsConfig()
        self.api = api
        self.default_success_url = default_success_url or settings.stripe_default_success_url
        self.default_cancel_url = default_cancel_url or settings.stripe_default_cancel_url

        # Wrap the bound methods so spans record the call arguments without the toolkit itself
        for method_name, span_name in LOGGED_CALLS.items():
            bound = getattr(self, method_name)
            setattr(self, method_name, log_operation(span_name, "tool")(bound))

    def is_enabled(self, action: str) -> bool:
        (group, operation), _ = ACTIONS[action]
        return bool(getattr(getattr(self.configuration, group), operation))

    def get_tools(self) -> list[str]:
        """Names of the enabled actions."""
        return [action for action in ACTIONS if self.is_enabled(action)]

    def _require(self, action: str) -> None:
        if not self.is_enabled(action):
            _, label = ACTIONS[action]
            raise ToolkitActionUnavailableError(f"{label} tool not available")

    def _call(self, description: str, func: Callable[[], Any]) -> Any:
        try:
            if not self.secret_key:
                raise ConfigurationError("Required environment variable STRIPE_SECRET_KEY is not set")
            return func()
        except Exception as exc:
            logger.error("Error trying to %s: %s", description, exc)
            raise StripeToolError(f"Failed to {description}: {_error_message(exc)}") from exc

    # ----- actions -----

    def create_payment_link(
        self,
        price: str,
        product_name: str,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Create a payment link for one unit of a price.

        ``price`` is either a Stripe price id (``price_...``) or an amount in
        cents; for an amount a one-off USD price is created for
        ``product_name`` first.
        """
        self._require("create_payment_link")
        if not price.startswith("price_"):
            self._require("create_product")

        success_url = success_url or self.default_success_url
        cancel_url = cancel_url or self.default_cancel_url

        def _create() -> Any:
            price_id = price
            if not price.startswith("price_"):
                created = self.api.Price.create(
                    api_key=self.secret_key,
                    currency="usd",
                    unit_amount=int(price),
                    product_data={"name": product_name},
                )
                price_id = created["id"]

            return self.api.PaymentLink.create(
                api_key=self.secret_key,
                line_items=[{"price": price_id, "quantity": 1}],
                after_completion={"type": "redirect", "redirect": {"url": success_url}},
                metadata={"product_name": product_name, "cancel_url": cancel_url},
            )

        result = self._call("create payment link", _create)
        return {
            "payment_link": result["url"],
            "payment_link_id": result["id"],
            "success": True,
        }

    def create_customer(
        self,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> dict[str, Any]:
        self._require("create_customer")
        result = self._call(
            "create customer",
            lambda: self.api.Customer.create(
                api_key=self.secret_key,
                **_compact(email=email, name=name, phone=phone),
            ),
        )
        return {
            "customer_id": result["id"],
            "email": result.get("email") or email,
            "name": result.get("name"),
            "success": True,
        }

    def list_products(self, limit: int = 10, active: Optional[bool] = True) -> dict[str, Any]:
        self._require("list_products")
        result = self._call(
            "list products",
            lambda: self.api.Product.list(
                api_key=self.secret_key,
                **_compact(limit=limit, active=active),
            ),
        )
        products = [
            {
                "id": product["id"],
                "name": product.get("name"),
                "description": product.get("description"),
                "active": product.get("active"),
            }
            for product in result["data"]
        ]
        return {"products": products, "count": len(products), "success": True}

    def create_subscription(self, customer_id: str, price_id: str) -> dict[str, Any]:
        self._require("create_subscription")
        result = self._call(
            "create subscription",
            lambda: self.api.Subscription.create(
                api_key=self.secret_key,
                customer=customer_id,
                items=[{"price": price_id}],
            ),
        )
        return {
            "subscription_id": result["id"],
            "status": result.get("status"),
            "customer_id": result.get("customer") or customer_id,
            "success": True,
        }

    def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        self._require("cancel_subscription")
        result = self._call(
            "cancel subscription",
            lambda: self.api.Subscription.cancel(subscription_id, api_key=self.secret_key),
        )
        return {
            "subscription_id": result["id"],
            "status": result.get("status"),
            "success": True,
        }

    def create_refund(
        self,
        payment_intent: str,
        amount: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> dict[str, Any]:
        self._require("create_refund")
        result = self._call(
            "create refund",
            lambda: self.api.Refund.create(
                api_key=self.secret_key,
                **_compact(payment_intent=payment_intent, amount=amount, reason=reason),
            ),
        )
        return {
            "refund_id": result["id"],
            "status": result.get("status"),
            "amount": result.get("amount"),
            "success": True,
        }


_toolkit: Optional[StripeToolkit] = None


def get_stripe_toolkit() -> StripeToolkit:
    """Toolkit built from settings (created on first use)."""
    global _toolkit
    if _toolkit is None:
        settings = get_settings()
        _toolkit = StripeToolkit(
            secret_key=settings.stripe_secret_key,
            configuration=settings.stripe_actions,
        )
    return _toolkit


__all__ = ["ACTIONS", "StripeToolkit", "get_stripe_toolkit"]
