"""
Stripe Tools

Payment operations for agents, backed by the Stripe toolkit. The SDK is
blocking, so each call runs in a worker thread.
"""

import asyncio
import re
from typing import Any, Callable, List, Optional

from galileo_agents.app.services.stripe_toolkit import StripeToolkit, get_stripe_toolkit
from .base import Tool, ToolParameter, ToolError


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class StripeTool(Tool):
    """Shared plumbing for tools that call the Stripe toolkit."""

    def __init__(self, toolkit: Optional[StripeToolkit] = None):
        super().__init__()
        self._toolkit = toolkit

    @property
    def toolkit(self) -> StripeToolkit:
        if self._toolkit is None:
            self._toolkit = get_stripe_toolkit()
        return self._toolkit

    async def _invoke(self, func: Callable[..., Any], **kwargs) -> Any:
        return await asyncio.to_thread(func, **kwargs)


class CreatePaymentLinkTool(StripeTool):

    def get_name(self) -> str:
        return "create_payment_link"

    def get_description(self) -> str:
        return "Create a Stripe payment link for products or services"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(name="price", type="string", description="Price ID or amount in cents"),
            ToolParameter(name="product_name", type="string", description="Name of the product or service"),
            ToolParameter(
                name="success_url",
                type="string",
                description="URL to redirect after successful payment",
                required=False,
            ),
            ToolParameter(
                name="cancel_url",
                type="string",
                description="URL to redirect after cancelled payment",
                required=False,
            ),
        ]

    def validate_input(self, **kwargs) -> bool:
        if _blank(kwargs.get("price")) or _blank(kwargs.get("product_name")):
            raise ToolError("Price and product name are required", self.name)
        return super().validate_input(**kwargs)

    async def execute(
        self,
        price: Any,
        product_name: str,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> Any:
        return await self._invoke(
            self.toolkit.create_payment_link,
            price=str(price).strip(),
            product_name=product_name,
            success_url=success_url,
            cancel_url=cancel_url,
        )


class CreateCustomerTool(StripeTool):

    def get_name(self) -> str:
        return "create_customer"

    def get_description(self) -> str:
        return "Create a new Stripe customer"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(name="email", type="string", description="Customer email address"),
            ToolParameter(name="name", type="string", description="Customer full name", required=False),
            ToolParameter(name="phone", type="string", description="Customer phone number", required=False),
        ]

    def validate_input(self, **kwargs) -> bool:
        email = kwargs.get("email")
        if _blank(email):
            raise ToolError("Email is required", self.name)
        if not EMAIL_PATTERN.match(str(email).strip()):
            raise ToolError(f"Invalid email address: {email}", self.name)
        return super().validate_input(**kwargs)

    async def execute(self, email: str, name: Optional[str] = None, phone: Optional[str] = None) -> Any:
        return await self._invoke(
            self.toolkit.create_customer,
            email=email.strip(),
            name=name,
            phone=phone,
        )


class ListProductsTool(StripeTool):

    def get_name(self) -> str:
        return "list_products"

    def get_description(self) -> str:
        return "List products in the Stripe account"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="limit",
                type="integer",
                description="Maximum number of products to return (1-100)",
                required=False,
                default=10,
            ),
            ToolParameter(
                name="active",
                type="boolean",
                description="Only return active products",
                required=False,
                default=True,
            ),
        ]

    def validate_input(self, **kwargs) -> bool:
        super().validate_input(**kwargs)
        limit = kwargs.get("limit", 10)
        if not isinstance(limit, int) or isinstance(limit, bool) or not 1 <= limit <= 100:
            raise ToolError("limit must be between 1 and 100", self.name)
        return True

    async def execute(self, limit: int = 10, active: bool = True) -> Any:
        return await self._invoke(self.toolkit.list_products, limit=limit, active=active)


class CreateSubscriptionTool(StripeTool):

    def get_name(self) -> str:
        return "create_subscription"

    def get_description(self) -> str:
        return "Subscribe a Stripe customer to a recurring price"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(name="customer_id", type="string", description="Stripe customer ID (cus_...)"),
            ToolParameter(name="price_id", type="string", description="Recurring price ID (price_...)"),
        ]

    def validate_input(self, **kwargs) -> bool:
        if _blank(kwargs.get("customer_id")) or _blank(kwargs.get("price_id")):
            raise ToolError("Customer ID and price ID are required", self.name)
        return super().validate_input(**kwargs)

    async def execute(self, customer_id: str, price_id: str) -> Any:
        return await self._invoke(
            self.toolkit.create_subscription,
            customer_id=customer_id,
            price_id=price_id,
        )


class CancelSubscriptionTool(StripeTool):

    def get_name(self) -> str:
        return "cancel_subscription"

    def get_description(self) -> str:
        return "Cancel an active Stripe subscription"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(name="subscription_id", type="string", description="Subscription ID (sub_...)"),
        ]

    def validate_input(self, **kwargs) -> bool:
        if _blank(kwargs.get("subscription_id")):
            raise ToolError("Subscription ID is required", self.name)
        return super().validate_input(**kwargs)

    async def execute(self, subscription_id: str) -> Any:
        return await self._invoke(self.toolkit.cancel_subscription, subscription_id=subscription_id)


class CreateRefundTool(StripeTool):

    def get_name(self) -> str:
        return "create_refund"

    def get_description(self) -> str:
        return "Refund a payment, fully or partially"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(name="payment_intent", type="string", description="Payment intent ID (pi_...)"),
            ToolParameter(
                name="amount",
                type="integer",
                description="Amount to refund in cents (defaults to the full amount)",
                required=False,
            ),
            ToolParameter(
                name="reason",
                type="string",
                description="One of: duplicate, fraudulent, requested_by_customer",
                required=False,
            ),
        ]

    def validate_input(self, **kwargs) -> bool:
        if _blank(kwargs.get("payment_intent")):
            raise ToolError("Payment intent is required", self.name)
        super().validate_input(**kwargs)

        amount = kwargs.get("amount")
        if amount is not None and (not isinstance(amount, int) or amount <= 0):
            raise ToolError("amount must be a positive number of cents", self.name)

        reason = kwargs.get("reason")
        if reason is not None and reason not in REFUND_REASONS:
            raise ToolError(f"reason must be one of {', '.join(REFUND_REASONS)}", self.name)
        return True

    async def execute(
        self,
        payment_intent: str,
        amount: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> Any:
        return await self._invoke(
            self.toolkit.create_refund,
            payment_intent=payment_intent,
            amount=amount,
            reason=reason,
        )


STRIPE_TOOL_CLASSES = (
    CreatePaymentLinkTool,
    CreateCustomerTool,
    ListProductsTool,
    CreateSubscriptionTool,
    CancelSubscriptionTool,
    CreateRefundTool,
)
