"""
Per-model token pricing.

Rates are USD per million tokens at Anthropic list price; cloud providers
apply their own adjustment on top.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ModelPricing:
    input: float
    output: float
    cache_read: float
    cache_write: float

    def scaled(self, factor: float) -> "ModelPricing":
        return ModelPricing(
            input=self.input * factor,
            output=self.output * factor,
            cache_read=self.cache_read * factor,
            cache_write=self.cache_write * factor,
        )


BASE_PRICING = {
    "opus-4-5": ModelPricing(input=5.0, output=25.0, cache_read=0.50, cache_write=6.25),
    "sonnet-4-5": ModelPricing(input=3.0, output=15.0, cache_read=0.30, cache_write=3.75),
    "haiku-4-5": ModelPricing(input=1.0, output=5.0, cache_read=0.10, cache_write=1.25),
    "sonnet-3-5": ModelPricing(input=3.0, output=15.0, cache_read=0.30, cache_write=3.75),
    "haiku-3-5": ModelPricing(input=0.80, output=4.0, cache_read=0.08, cache_write=1.0),
}

# Unknown models are priced as Sonnet 4.5
DEFAULT_PRICING = BASE_PRICING["sonnet-4-5"]

VERTEX_PREMIUM = 1.1


def normalize_model_name(model_id: str) -> str:
    """
    Reduce a model id to its pricing key.

    "claude-opus-4-5-20251101" -> "opus-4-5", "claude-3-5-haiku" -> "haiku-3-5";
    anything unrecognised is returned lower-cased.
    """
    lowered = model_id.lower()
    for tier in ("opus", "sonnet", "haiku"):
        if tier not in lowered:
            continue
        for version in ("4-5", "3-5"):
            if version in lowered or version.replace("-", ".") in lowered:
                key = f"{tier}-{version}"
                if key in BASE_PRICING:
                    return key
        break
    return lowered


class PricingProvider(str, Enum):
    ANTHROPIC = "anthropic"
    AWS_BEDROCK = "aws_bedrock"
    GOOGLE_VERTEX = "google_vertex"

    @property
    def display_name(self) -> str:
        return {
            PricingProvider.ANTHROPIC: "Anthropic",
            PricingProvider.AWS_BEDROCK: "AWS Bedrock",
            PricingProvider.GOOGLE_VERTEX: "Google Vertex AI",
        }[self]

    def pricing(self, model_id: str) -> ModelPricing:
        base = BASE_PRICING.get(normalize_model_name(model_id), DEFAULT_PRICING)
        if self is PricingProvider.GOOGLE_VERTEX:
            return base.scaled(VERTEX_PREMIUM)
        return base

    def calculate_cost(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cache_read_tokens: int = 0,
        cache_write_tokens: int = 0,
    ) -> float:
        """Total USD cost for a token mix on this provider."""
        pricing = self.pricing(model)
        return (
            input_tokens / 1_000_000 * pricing.input
            + output_tokens / 1_000_000 * pricing.output
            + cache_read_tokens / 1_000_000 * pricing.cache_read
            + cache_write_tokens / 1_000_000 * pricing.cache_write
        )
