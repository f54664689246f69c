"""
Usage metering and pricing.
"""

from deck_orchestrator.usage.meter import UsageMeter
from deck_orchestrator.usage.pricing import PRICING, CallCost, ModelPricing, calculate_cost, get_pricing

__all__ = ["PRICING", "CallCost", "ModelPricing", "UsageMeter", "calculate_cost", "get_pricing"]
