"""HTTP surface: FastAPI app factory and the per-client rate limiter."""

from .app import create_app
from .rate_limit import RateLimitDecision, RateLimiter, client_key

__all__ = ["RateLimitDecision", "RateLimiter", "client_key", "create_app"]
