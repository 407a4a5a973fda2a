"""
Model pricing configuration.
All prices are in USD per million tokens.
"""


class ModelPricing:
    """Pricing information for the Sonar models."""

    FALLBACK_MODEL = "sonar"

    SONAR_PRICING = {
        "sonar": {"input": 1.00, "output": 1.00},
        "sonar-pro": {"input": 3.00, "output": 15.00},
        "sonar-reasoning": {"input": 1.00, "output": 5.00},
        "sonar-reasoning-pro": {"input": 2.00, "output": 8.00},
        "sonar-deep-research": {"input": 2.00, "output": 8.00},
    }

    @classmethod
    def get_model_pricing(cls, model_name: str) -> dict[str, float]:
        """
        Get pricing information for a specific model.

        Unknown models are priced like the lightweight ``sonar`` model.

        Args:
            model_name: The specific model name

        Returns:
            Dictionary with 'input' and 'output' pricing per million tokens
        """
        return cls.SONAR_PRICING.get(model_name) or cls.SONAR_PRICING[cls.FALLBACK_MODEL]
