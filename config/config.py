import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_RESEARCH_DIR = Path.home() / "Documents" / "Perplexity Research"
PERPLEXITY_BASE_URL = "https://api.perplexity.ai"


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""


class Config:
    """Configuration management for the application."""

    def __init__(self, env_path: Path | None = None):
        """
        Initialize configuration with environment variables.

        Args:
            env_path: Optional .env file; defaults to the one at the repository root
        """
        env_path = env_path or Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # API Configuration
        self.PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY")
        self.PERPLEXITY_BASE_URL = os.getenv("PERPLEXITY_BASE_URL", PERPLEXITY_BASE_URL)

        # Storage Configuration
        self.RESEARCH_DIR = os.getenv("PERPLEXITY_RESEARCH_DIR") or None

    def validate(self) -> None:
        """
        Validate that all required configuration is present.

        Raises:
            ConfigurationError: If PERPLEXITY_API_KEY is not set
        """
        if not self.PERPLEXITY_API_KEY:
            raise ConfigurationError(
                "PERPLEXITY_API_KEY is required. Set it as an environment variable or in .env."
            )

    def resolve_research_dir(self, override: str | Path | None = None) -> Path:
        """
        Resolve the research directory: explicit override, then environment, then default.

        Args:
            override: Optional explicit directory

        Returns:
            Path to the research directory (not created here)
        """
        if override:
            return Path(override).expanduser()
        if self.RESEARCH_DIR:
            return Path(self.RESEARCH_DIR).expanduser()
        return DEFAULT_RESEARCH_DIR
