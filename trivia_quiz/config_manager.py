"""
Configuration manager for trivia provider settings and quiz parameters.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import Difficulty
from .question_loader import DEFAULT_API_URL, QuestionSetLoader

API_URL_ENV_VAR = "TRIVIA_API_URL"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read."""
    pass


def load_config(config_path: Union[str, Path] = "config.json") -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    A missing file yields an empty configuration so defaults apply.
    The TRIVIA_API_URL environment variable overrides the provider URL.

    Args:
        config_path: Path to the JSON configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    config_path = Path(config_path)
    config: Dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error loading {config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration in {config_path} must be a JSON object")

    # Environment variable takes precedence
    api_url = os.getenv(API_URL_ENV_VAR)
    if api_url:
        config.setdefault('provider', {})['api_url'] = api_url

    return config


def setup_logging_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    log_directory = log_config.get('log_directory')
    if log_directory:
        log_directory = Path(log_directory)
        log_directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_directory / "quiz.log", encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # Reduce HTTP client noise
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


class ConfigManager:
    """Manages trivia provider settings and the allowed selection criteria."""

    # Default configuration values
    DEFAULT_API_URL = DEFAULT_API_URL
    DEFAULT_TIMEOUT = 10.0
    DEFAULT_CATEGORIES = {
        "sports": "21",
        "geography": "22",
        "history": "23",
        "politics": "24",
    }
    DEFAULT_AMOUNTS = (10, 15, 20)

    # Validation limits
    MIN_TIMEOUT = 1.0
    MAX_TIMEOUT = 120.0
    MIN_AMOUNT = 1
    MAX_AMOUNT = 50  # Provider maximum per request

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._api_url = self.DEFAULT_API_URL
        self._timeout = self.DEFAULT_TIMEOUT
        self._categories: Dict[str, str] = dict(self.DEFAULT_CATEGORIES)
        self._amounts: Tuple[int, ...] = self.DEFAULT_AMOUNTS

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ConfigManager":
        """
        Build a ConfigManager from a configuration dictionary.

        Recognized sections are 'provider' (api_url, timeout) and
        'quiz' (categories, amounts). Invalid values are logged and skipped.

        Args:
            config: Configuration dictionary, e.g. from load_config()

        Returns:
            Configured ConfigManager
        """
        manager = cls()
        provider = config.get('provider', {})
        quiz = config.get('quiz', {})

        if 'api_url' in provider:
            manager.set_api_url(provider['api_url'])
        if 'timeout' in provider:
            manager.set_request_timeout(provider['timeout'])
        if 'categories' in quiz:
            manager.set_categories(quiz['categories'])
        if 'amounts' in quiz:
            manager.set_amounts(quiz['amounts'])

        return manager

    def set_api_url(self, api_url: str) -> Dict[str, Any]:
        """
        Set the trivia provider endpoint.

        Args:
            api_url: Absolute http(s) URL of the provider API

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(api_url, str) or not api_url.startswith(("http://", "https://")):
            error_msg = f"Provider URL must be an http(s) URL, got {api_url!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "Invalid provider URL"
            }

        self._api_url = api_url
        self.logger.info(f"Provider URL set to {api_url}")
        return {
            'success': True,
            'message': f"Provider URL set to {api_url}",
            'user_message': "Provider URL updated"
        }

    def get_api_url(self) -> str:
        return self._api_url

    def set_request_timeout(self, timeout: float) -> Dict[str, Any]:
        """
        Set the provider request timeout.

        Args:
            timeout: Timeout in seconds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        # bool is an int subclass; reject it explicitly
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            error_msg = f"Request timeout must be a number, got {type(timeout).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: Expected a number, got {type(timeout).__name__}"
            }

        if timeout < self.MIN_TIMEOUT or timeout > self.MAX_TIMEOUT:
            error_msg = (f"Request timeout must be between {self.MIN_TIMEOUT} "
                         f"and {self.MAX_TIMEOUT} seconds")
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Timeout out of range: {self.MIN_TIMEOUT}-{self.MAX_TIMEOUT} seconds"
            }

        self._timeout = float(timeout)
        self.logger.info(f"Request timeout set to {timeout}s")
        return {
            'success': True,
            'message': f"Request timeout set to {timeout}s",
            'user_message': f"Request timeout set to {timeout} seconds"
        }

    def get_request_timeout(self) -> float:
        return self._timeout

    def set_categories(self, categories: Dict[str, str]) -> Dict[str, Any]:
        """
        Replace the selectable categories.

        Args:
            categories: Mapping of display label to provider category id

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if (not isinstance(categories, dict) or not categories or
                not all(isinstance(k, str) and isinstance(v, str) and v
                        for k, v in categories.items())):
            error_msg = "Categories must be a non-empty mapping of label to category id"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "Invalid category configuration"
            }

        self._categories = dict(categories)
        self.logger.info(f"Categories set to {sorted(self._categories)}")
        return {
            'success': True,
            'message': f"{len(categories)} categories configured",
            'user_message': f"{len(categories)} categories available"
        }

    def get_categories(self) -> Dict[str, str]:
        return dict(self._categories)

    def set_amounts(self, amounts: List[int]) -> Dict[str, Any]:
        """
        Replace the selectable question counts.

        Args:
            amounts: Allowed question counts

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if (not isinstance(amounts, (list, tuple)) or not amounts or
                not all(isinstance(a, int) and not isinstance(a, bool) and
                        self.MIN_AMOUNT <= a <= self.MAX_AMOUNT for a in amounts)):
            error_msg = (f"Amounts must be a non-empty list of integers between "
                         f"{self.MIN_AMOUNT} and {self.MAX_AMOUNT}")
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "Invalid question count options"
            }

        self._amounts = tuple(sorted(set(amounts)))
        self.logger.info(f"Question count options set to {self._amounts}")
        return {
            'success': True,
            'message': f"Question count options set to {self._amounts}",
            'user_message': f"Question count options: {', '.join(map(str, self._amounts))}"
        }

    def get_amounts(self) -> Tuple[int, ...]:
        return self._amounts

    def is_valid_difficulty(self, value: Any) -> bool:
        if isinstance(value, Difficulty):
            return True
        return isinstance(value, str) and value in {d.value for d in Difficulty}

    def is_valid_category(self, value: Any) -> bool:
        return value in self._categories.values()

    def is_valid_amount(self, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value in self._amounts

    def resolve_category(self, value: str) -> Optional[str]:
        """
        Resolve a category label or id to a provider category id.

        Args:
            value: Category label (e.g. "sports") or id (e.g. "21")

        Returns:
            Provider category id, or None if unknown
        """
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if self.is_valid_category(value):
            return value
        if isinstance(value, str):
            return self._categories.get(value.lower())
        return None

    def get_category_label(self, category_id: str) -> Optional[str]:
        for label, cid in self._categories.items():
            if cid == category_id:
                return label
        return None

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._api_url = self.DEFAULT_API_URL
        self._timeout = self.DEFAULT_TIMEOUT
        self._categories = dict(self.DEFAULT_CATEGORIES)
        self._amounts = self.DEFAULT_AMOUNTS
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if not self._api_url.startswith(("http://", "https://")):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid provider URL: {self._api_url}")

        if not (self.MIN_TIMEOUT <= self._timeout <= self.MAX_TIMEOUT):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid request timeout: {self._timeout}")

        if not self._categories:
            validation_result["valid"] = False
            validation_result["issues"].append("No categories configured")

        if not self._amounts:
            validation_result["valid"] = False
            validation_result["issues"].append("No question count options configured")

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        categories_str = ", ".join(
            f"{label} ({cid})" for label, cid in sorted(self._categories.items())
        )
        return (
            f"Quiz Settings:\n"
            f"Provider: {self._api_url}\n"
            f"Timeout: {self._timeout:g} seconds\n"
            f"Categories: {categories_str}\n"
            f"Question counts: {', '.join(map(str, self._amounts))}"
        )

    def create_loader(self, **kwargs) -> QuestionSetLoader:
        """Create a QuestionSetLoader using the configured provider settings."""
        return QuestionSetLoader(api_url=self._api_url, timeout=self._timeout, **kwargs)
