"""
Redis-based rate limiting middleware.
Implements distributed rate limiting with a sliding window algorithm.
"""

import hashlib
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import redis.asyncio as redis
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.errors import error_body

logger = logging.getLogger(__name__)


class RateLimitStrategy(str, Enum):
    """Rate limiting strategy types."""
    IP_ADDRESS = "ip"
    USER_ID = "user"


class RateLimitWindow(str, Enum):
    """Time window types for rate limiting."""
    MINUTE = "minute"
    HOUR = "hour"


@dataclass
class RateLimitRule:
    """
    Rate limit rule configuration.

    ``paths`` are regular expressions matched against the start of the
    request path; ``name`` keeps the Redis keys of different rules apart.
    """
    strategy: RateLimitStrategy
    window: RateLimitWindow
    max_requests: int
    paths: Optional[List[str]] = None
    methods: Optional[List[str]] = None
    name: str = "default"
    _compiled: List[re.Pattern] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._compiled = [re.compile(p) for p in (self.paths or [])]

    def matches(self, path: str, method: str) -> bool:
        if self._compiled and not any(p.match(path) for p in self._compiled):
            return False
        if self.methods and method not in self.methods:
            return False
        return True


class SlidingWindowRateLimiter:
    """
    Redis-based sliding window rate limiter.

    Implements a precise sliding window algorithm using Redis sorted sets.
    More accurate than fixed window and more memory-efficient than full sliding log.
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
        cost: int = 1,
    ) -> tuple[bool, Dict[str, Any]]:
        """
        Check if request is allowed under rate limit.

        Args:
            key: Unique identifier for the rate limit
            max_requests: Maximum requests allowed in window
            window_seconds: Time window in seconds
            cost: Cost of this request

        Returns:
            Tuple of (is_allowed, metadata)
            metadata contains: limit, remaining, reset, retry_after, current
        """
        now = time.time()
        window_start = now - window_seconds

        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            request_id = f"{now}:{hashlib.md5(str(now).encode()).hexdigest()[:8]}"
            pipe.zadd(key, {request_id: now})
            pipe.expire(key, window_seconds + 60)
            results = await pipe.execute()

            # Count before this request was added
            current_count = results[1]

            remaining = max(0, max_requests - current_count - cost)
            reset_time = int(now + window_seconds)
            is_allowed = (current_count + cost) <= max_requests

            if not is_allowed:
                oldest_scores = await self.redis.zrange(key, 0, 0, withscores=True)
                if oldest_scores:
                    oldest_timestamp = oldest_scores[0][1]
                    retry_after = int(oldest_timestamp + window_seconds - now)
                else:
                    retry_after = window_seconds
                await self.redis.zrem(key, request_id)
            else:
                retry_after = 0

            return is_allowed, {
                'limit': max_requests,
                'remaining': remaining,
                'reset': reset_time,
                'retry_after': max(0, retry_after),
                'current': current_count,
            }

        except RedisConnectionError as e:
            logger.error(f"Redis connection error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds, 'redis_unavailable')

        except RedisError as e:
            logger.error(f"Redis error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds, 'redis_error')

    @staticmethod
    def _fail_open(max_requests: int, now: float, window_seconds: int, error: str) -> Dict[str, Any]:
        return {
            'limit': max_requests,
            'remaining': max_requests,
            'reset': int(now + window_seconds),
            'retry_after': 0,
            'error': error,
        }


def default_rules(
    api_prefix: str = "",
    per_minute: int = 120,
    per_hour: int = 2000,
    auth_per_minute: int = 5,
    chat_per_minute: int = 30,
) -> List[RateLimitRule]:
    """Rules for the team-matchmaking API."""
    prefix = re.escape(api_prefix.rstrip("/"))
    return [
        # Strict limits for credential endpoints
        RateLimitRule(
            name="auth",
            strategy=RateLimitStrategy.IP_ADDRESS,
            window=RateLimitWindow.MINUTE,
            max_requests=auth_per_minute,
            paths=[rf"{prefix}/auth/(login|register)/?$"],
            methods=["POST"],
        ),
        # Chat sends per user
        RateLimitRule(
            name="chat",
            strategy=RateLimitStrategy.USER_ID,
            window=RateLimitWindow.MINUTE,
            max_requests=chat_per_minute,
            paths=[rf"{prefix}/teams/\d+/chat/?$", rf"{prefix}/chat/direct/\d+/?$"],
            methods=["POST"],
        ),
        RateLimitRule(
            name="user",
            strategy=RateLimitStrategy.USER_ID,
            window=RateLimitWindow.MINUTE,
            max_requests=per_minute,
        ),
        RateLimitRule(
            name="user",
            strategy=RateLimitStrategy.USER_ID,
            window=RateLimitWindow.HOUR,
            max_requests=per_hour,
        ),
        # Fallback per IP
        RateLimitRule(
            name="ip",
            strategy=RateLimitStrategy.IP_ADDRESS,
            window=RateLimitWindow.MINUTE,
            max_requests=per_minute * 2,
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware.

    Features:
    - Per-IP and per-user strategies; anonymous callers fall back to their IP
    - Sliding window algorithm backed by Redis
    - Graceful degradation (fail open) if Redis is unavailable
    - ``X-RateLimit-*`` headers on every limited response

    Must sit inside ``AuthenticationMiddleware`` so per-user rules can read
    ``scope["auth"]``.
    """

    WINDOW_SECONDS = {
        RateLimitWindow.MINUTE: 60,
        RateLimitWindow.HOUR: 3600,
    }

    SKIP_PATHS = ('/health', '/ready', '/version.json')

    def __init__(
        self,
        app: ASGIApp,
        redis_url: str = "redis://localhost:6379/0",
        rules: Optional[List[RateLimitRule]] = None,
        key_prefix: str = "ratelimit",
        enable_headers: bool = True,
        redis_client: Optional[Redis] = None,
    ):
        super().__init__(app)
        self.redis_url = redis_url
        self.redis_client: Optional[Redis] = redis_client
        self.limiter: Optional[SlidingWindowRateLimiter] = (
            SlidingWindowRateLimiter(redis_client) if redis_client is not None else None
        )
        self.rules = rules if rules is not None else default_rules()
        self.key_prefix = key_prefix
        self.enable_headers = enable_headers
        self._initialized = redis_client is not None

    async def _initialize(self):
        """Initialize Redis connection lazily."""
        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30,
            )
            self.limiter = SlidingWindowRateLimiter(self.redis_client)
            logger.info("Rate limiter initialized successfully")
        except (RedisError, ValueError) as e:
            logger.error(f"Failed to initialize rate limiter: {e}")
        self._initialized = True

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self._initialized:
            await self._initialize()

        if not self.limiter:
            return await call_next(request)

        if request.url.path.startswith(self.SKIP_PATHS):
            return await call_next(request)

        result = await self._check_rate_limits(request)

        if not result['allowed']:
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_body(
                    status.HTTP_429_TOO_MANY_REQUESTS,
                    'RATE_LIMIT_EXCEEDED',
                    'Too many requests. Please try again later.',
                    request.url.path,
                    request.method,
                    {'retry_after': result['retry_after']},
                ),
            )
            if self.enable_headers:
                self._add_rate_limit_headers(response, result)
            return response

        response = await call_next(request)
        if self.enable_headers and result['limit']:
            self._add_rate_limit_headers(response, result)
        return response

    async def _check_rate_limits(self, request: Request) -> Dict[str, Any]:
        """Evaluate every matching rule and keep the most restrictive outcome."""
        results = {
            'allowed': True,
            'limit': 0,
            'remaining': 0,
            'reset': 0,
            'retry_after': 0,
        }

        for rule in self.rules:
            if not rule.matches(request.url.path, request.method):
                continue

            key = self._generate_key(request, rule)
            allowed, metadata = await self.limiter.is_allowed(
                key=key,
                max_requests=rule.max_requests,
                window_seconds=self.WINDOW_SECONDS[rule.window],
            )

            if not allowed:
                results['allowed'] = False
                results['retry_after'] = max(results['retry_after'], metadata['retry_after'])

            if results['limit'] == 0 or metadata['remaining'] < results['remaining']:
                results['limit'] = metadata['limit']
                results['remaining'] = metadata['remaining']
                results['reset'] = metadata['reset']

        return results

    def _generate_key(self, request: Request, rule: RateLimitRule) -> str:
        parts = [self.key_prefix, rule.name, rule.strategy.value, rule.window.value]

        if rule.strategy == RateLimitStrategy.IP_ADDRESS:
            parts.append(self._get_client_ip(request))

        elif rule.strategy == RateLimitStrategy.USER_ID:
            user_id = self._get_user_id(request)
            if user_id is None:
                # Anonymous callers are limited by IP
                parts.append(f"ip:{self._get_client_ip(request)}")
            else:
                parts.append(str(user_id))

        return ":".join(parts)

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get('x-forwarded-for')
        if forwarded_for:
            return forwarded_for.split(',')[0].strip()

        real_ip = request.headers.get('x-real-ip')
        if real_ip:
            return real_ip

        return request.client.host if request.client else 'unknown'

    def _get_user_id(self, request: Request) -> Optional[int]:
        auth = request.scope.get("auth")
        return getattr(auth, "user_id", None)

    def _add_rate_limit_headers(self, response: Response, result: Dict[str, Any]):
        response.headers['X-RateLimit-Limit'] = str(result['limit'])
        response.headers['X-RateLimit-Remaining'] = str(result['remaining'])
        response.headers['X-RateLimit-Reset'] = str(result['reset'])

        if not result['allowed']:
            response.headers['Retry-After'] = str(result['retry_after'])

