"""
Cost calculation module for journal entries.
This module provides cost estimation based on token usage and model pricing.
"""

from config.pricing import ModelPricing


class CostCalculator:
    """
    Calculate costs based on token usage and model pricing.
    """

    def __init__(self, model_name: str):
        """
        Initialize the cost calculator with model information.

        Args:
            model_name: The Sonar model name; unknown names use fallback pricing
        """
        self.model_name = model_name
        self.pricing = ModelPricing.get_model_pricing(model_name)

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> dict[str, float]:
        """
        Calculate cost for a single API call.

        Args:
            prompt_tokens: Number of input/prompt tokens
            completion_tokens: Number of output/completion tokens

        Returns:
            Dictionary containing input_cost, output_cost and total_cost
        """
        input_cost = (prompt_tokens / 1_000_000) * self.pricing["input"]
        output_cost = (completion_tokens / 1_000_000) * self.pricing["output"]
        total_cost = input_cost + output_cost

        return {"input_cost": input_cost, "output_cost": output_cost, "total_cost": total_cost}

    def format_cost(self, cost: float) -> str:
        """
        Format cost as a USD string with four decimals, e.g. ``$0.0012``.
        """
        return f"${cost:.4f}"

    def estimate(self, prompt_tokens: int, completion_tokens: int) -> str:
        """Calculate and format the total cost of one call."""
        return self.format_cost(self.calculate_cost(prompt_tokens, completion_tokens)["total_cost"])
