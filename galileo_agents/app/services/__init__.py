"""External services used by the tools: Open-Meteo weather and the Stripe toolkit."""

from galileo_agents.app.services.weather import Forecast, OpenMeteoClient, get_weather_condition
from galileo_agents.app.services.stripe_toolkit import StripeToolkit, get_stripe_toolkit

__all__ = [
    "Forecast",
    "OpenMeteoClient",
    "get_weather_condition",
    "StripeToolkit",
    "get_stripe_toolkit",
]
