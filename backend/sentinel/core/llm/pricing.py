"""Static per-1000-token rates for the gateway's models."""

from typing import Dict, Tuple

from .models import CostEstimate, ModelKind

# (input, output) USD per 1000 tokens, keyed by Bedrock model id
TOKEN_COSTS_PER_1K: Dict[str, Tuple[float, float]] = {
    "anthropic.claude-3-5-sonnet-20241022-v2:0": (0.003, 0.015),
    "meta.llama3-70b-instruct-v1:0": (0.00265, 0.0035),
    "amazon.titan-embed-text-v2:0": (0.0001, 0.0),
}

# Used when a configured model id is not in the table above
DEFAULT_COSTS_BY_KIND: Dict[ModelKind, Tuple[float, float]] = {
    ModelKind.CHAT: (0.003, 0.015),
    ModelKind.COMPLETION: (0.00265, 0.0035),
    ModelKind.EMBEDDING: (0.0001, 0.0),
}


def build_rate_table(model_ids: Dict[ModelKind, str]) -> Dict[str, Tuple[float, float]]:
    """Build a rate table covering every model id the gateway can produce."""
    table = dict(TOKEN_COSTS_PER_1K)
    for kind, model_id in model_ids.items():
        table.setdefault(model_id, DEFAULT_COSTS_BY_KIND[kind])
    return table


def compute_cost(
    rates: Tuple[float, float],
    input_tokens: int,
    output_tokens: int,
) -> CostEstimate:
    input_rate, output_rate = rates
    input_cost = (input_tokens / 1000) * input_rate
    output_cost = (output_tokens / 1000) * output_rate
    return CostEstimate(
        input_cost_usd=round(input_cost, 6),
        output_cost_usd=round(output_cost, 6),
        total_cost_usd=round(input_cost + output_cost, 6),
    )
