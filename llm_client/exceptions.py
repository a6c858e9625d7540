"""Exceptions for LLM client"""


class LLMError(Exception):
    """Base exception for LLM errors"""

    def __init__(self, message: str = "LLM request failed", provider: str = "groq"):
        super().__init__(message)
        self.provider = provider


class RateLimitError(LLMError):
    """Raised when API rate limit is exceeded; retry_after is in seconds"""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after


class APIKeyError(LLMError):
    """Raised when API key is missing or rejected"""

    def __init__(self, message: str = "API key is missing or invalid"):
        super().__init__(message)


class ModelError(LLMError):
    """Raised when the model returns no usable completion"""

    def __init__(self, message: str = "Model returned no completion"):
        super().__init__(message)
