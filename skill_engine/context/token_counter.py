"""
Token Counter

Estimates the context weight of skill bodies.

- tiktoken for OpenAI-family models
- Character-ratio approximation for Anthropic and everything else
"""

import re
from typing import Dict, Optional


class TokenCounter:
    """Base class for token counters."""

    def count_tokens(self, text: str) -> int:
        """Count tokens in text."""
        raise NotImplementedError

    def estimate_weight(self, text: str) -> int:
        """Weight of a body of text. Never below 1, even for empty text."""
        return max(1, self.count_tokens(text))


class TikTokenCounter(TokenCounter):
    """Token counter using tiktoken (OpenAI models)."""

    def __init__(self, model: str = "gpt-4"):
        """
        Initialize tiktoken counter.

        Args:
            model: Model name for tokenizer selection
        """
        self.model = model
        self._tokenizer = None

    @property
    def tokenizer(self):
        """Lazy load tokenizer."""
        if self._tokenizer is None:
            import tiktoken
            try:
                self._tokenizer = tiktoken.encoding_for_model(self.model)
            except KeyError:
                # Unknown model name, use the GPT-4 encoding
                self._tokenizer = tiktoken.get_encoding("cl100k_base")
        return self._tokenizer

    def count_tokens(self, text: str) -> int:
        """Count tokens using tiktoken."""
        return len(self.tokenizer.encode(text))


class ApproximateTokenCounter(TokenCounter):
    """
    Approximate token counter for when no tokenizer is available.

    Rule of thumb: 1 token ≈ 4 characters (English), ≈ 3.5 for Claude models
    """

    def __init__(self, chars_per_token: float = 4.0):
        """
        Initialize approximate counter.

        Args:
            chars_per_token: Characters per token ratio (default: 4 for English)
        """
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self.chars_per_token = chars_per_token

    def count_tokens(self, text: str) -> int:
        """Approximate token count based on character count."""
        return int(len(text) / self.chars_per_token)


# Model family patterns
MODEL_PATTERNS = {
    "openai": [
        r"^gpt-",
        r"^o1-",
        r"^chatgpt-",
    ],
    "anthropic": [
        r"^claude-",
    ],
}


def detect_model_family(model: str) -> str:
    """
    Detect model family from model name.

    Returns:
        Model family: 'openai', 'anthropic', or 'other'
    """
    model_lower = model.lower()

    for family in ("anthropic", "openai"):
        for pattern in MODEL_PATTERNS[family]:
            if re.match(pattern, model_lower):
                return family

    return "other"


_counters: Dict[str, TokenCounter] = {}


def get_token_counter(
    model: Optional[str] = None,
    chars_per_token: float = 4.0,
) -> TokenCounter:
    """
    Get an appropriate token counter for a model.

    Args:
        model: Model name; None selects the approximate counter
        chars_per_token: Ratio used by the approximate counter

    Returns:
        TokenCounter instance (cached per model)
    """
    key = f"{model}:{chars_per_token}"
    if key in _counters:
        return _counters[key]

    family = detect_model_family(model) if model else "other"
    if family == "openai":
        counter: TokenCounter = TikTokenCounter(model)
    elif family == "anthropic":
        counter = ApproximateTokenCounter(chars_per_token=3.5)
    else:
        counter = ApproximateTokenCounter(chars_per_token=chars_per_token)

    _counters[key] = counter
    return counter


__all__ = [
    "TokenCounter",
    "TikTokenCounter",
    "ApproximateTokenCounter",
    "detect_model_family",
    "get_token_counter",
]
