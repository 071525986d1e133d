"""
Marketplace API client

Async HTTP client for the marketplace API, used by scripts, integrations and tests.

- Attaches the stored access token as a bearer token
- On 401 refreshes the token pair once, even when many requests fail at the
  same time; requests that hit 401 during a refresh wait for it and retry
- Retries network errors, timeouts, 408 and 5xx with exponential backoff,
  and 429 with its own budget honouring Retry-After
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

import httpx

from src.core.errors import ErrorCode
from src.utils.resilience_retry import BackoffStrategy, RetryConfig, RetryExecutor

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"


class ApiClientError(Exception):
    """
    Request failed

    status_code is None when no response was received; envelope holds the
    server's error body when there was one
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        envelope: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.envelope = envelope

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiClientError":
        try:
            envelope = response.json()
        except ValueError:
            envelope = None

        message = f"HTTP {response.status_code}"
        if isinstance(envelope, dict):
            message = (envelope.get("error") or {}).get("message") or message
        else:
            envelope = None
        return cls(message, response.status_code, envelope)


class TokenStore(Protocol):
    def get_tokens(self) -> Optional[Dict[str, str]]: ...

    def save_tokens(self, tokens: Dict[str, str]) -> None: ...

    def clear_tokens(self) -> None: ...


class InMemoryTokenStore:
    """Keeps {accessToken, refreshToken} for the life of the process"""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self._tokens = dict(tokens) if tokens else None

    def get_tokens(self) -> Optional[Dict[str, str]]:
        return dict(self._tokens) if self._tokens else None

    def save_tokens(self, tokens: Dict[str, str]) -> None:
        self._tokens = {
            "accessToken": tokens["accessToken"],
            "refreshToken": tokens["refreshToken"],
        }

    def clear_tokens(self) -> None:
        self._tokens = None


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 408 or status_code >= 500


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        max_retry_delay: float = 30.0,
        rate_limit_max_retries: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        """
        Args:
            base_url: API root including the prefix, e.g. http://localhost:8000/api/v1
            token_store: Where the token pair lives, in memory when omitted
            timeout: Per request timeout (seconds)
            max_retries: Retries for network errors, timeouts, 408 and 5xx
            retry_delay: Base backoff delay (seconds), doubled per retry
            max_retry_delay: Cap for any single delay, Retry-After included
            rate_limit_max_retries: Retries for 429 responses
            transport: httpx transport, e.g. httpx.MockTransport in tests
            sleep: Awaitable sleep, asyncio.sleep when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store or InMemoryTokenStore()
        self.max_retries = max_retries
        self.max_retry_delay = max_retry_delay
        self.rate_limit_max_retries = rate_limit_max_retries
        self._sleep = sleep or asyncio.sleep
        self._backoff = RetryExecutor(
            RetryConfig(
                max_attempts=max_retries + 1,
                max_delay=max_retry_delay,
                backoff_strategy=BackoffStrategy.EXPONENTIAL,
                base_delay=retry_delay,
            )
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._refresh_future: Optional[asyncio.Future] = None

    @classmethod
    def from_settings(cls, settings, token_store: Optional[TokenStore] = None, **kwargs) -> "ApiClient":
        options = {
            "timeout": settings.api_timeout,
            "max_retries": settings.api_max_retries,
            "retry_delay": settings.api_retry_delay,
            "max_retry_delay": settings.api_max_retry_delay,
            "rate_limit_max_retries": settings.api_rate_limit_max_retries,
        }
        options.update(kwargs)
        return cls(settings.api_base_url, token_store, **options)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_tokens(self, tokens: Dict[str, str]) -> None:
        self.token_store.save_tokens(tokens)

    def clear_tokens(self) -> None:
        self.token_store.clear_tokens()

    def is_authenticated(self) -> bool:
        tokens = self.token_store.get_tokens()
        return bool(tokens and tokens.get("accessToken"))

    def _access_token(self) -> Optional[str]:
        tokens = self.token_store.get_tokens()
        return tokens.get("accessToken") if tokens else None

    def retry_delay_for(self, attempt: int, retry_after: Optional[str] = None) -> float:
        """
        Delay before the given (1-based) retry

        A numeric Retry-After header wins over the exponential backoff; either
        way the result is capped at max_retry_delay. Negative values
        count as zero and non-finite ones are ignored.
        """
        if retry_after is not None:
            try:
                seconds = float(retry_after)
            except ValueError:
                seconds = None
            if seconds is not None and math.isfinite(seconds):
                return min(max(seconds, 0.0), self.max_retry_delay)
        return self._backoff.calculate_delay(attempt)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send with retries; the final response is returned whatever its status"""
        retries = 0
        rate_limit_retries = 0

        while True:
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                if retries >= self.max_retries:
                    raise ApiClientError(f"Network error: {e}") from e
                retries += 1
                delay = self.retry_delay_for(retries)
                logger.warning(
                    f"{method} {path}: {type(e).__name__}, retry {retries}/{self.max_retries} in {delay:.2f}s"
                )
                await self._sleep(delay)
                continue

            status_code = response.status_code
            if status_code == 429 and rate_limit_retries < self.rate_limit_max_retries:
                rate_limit_retries += 1
                delay = self.retry_delay_for(
                    rate_limit_retries, response.headers.get("Retry-After")
                )
                logger.warning(
                    f"{method} {path}: rate limited, retry "
                    f"{rate_limit_retries}/{self.rate_limit_max_retries} in {delay:.2f}s"
                )
                await self._sleep(delay)
                continue

            if _is_retryable_status(status_code) and retries < self.max_retries:
                retries += 1
                delay = self.retry_delay_for(retries)
                logger.warning(
                    f"{method} {path}: HTTP {status_code}, retry {retries}/{self.max_retries} in {delay:.2f}s"
                )
                await self._sleep(delay)
                continue

            return response

    async def _run_refresh(self) -> str:
        tokens = self.token_store.get_tokens()
        refresh_token = tokens.get("refreshToken") if tokens else None
        if not refresh_token:
            raise ApiClientError("No refresh token available", 401)

        response = await self._client.post(REFRESH_PATH, json={"refreshToken": refresh_token})
        if response.is_error:
            raise ApiClientError.from_response(response)

        body = response.json()
        new_tokens = body.get("data") if body.get("success") else None
        if not new_tokens or not new_tokens.get("accessToken"):
            raise ApiClientError("Token refresh failed", response.status_code, body)

        self.token_store.save_tokens(new_tokens)
        logger.info("Access token refreshed")
        return new_tokens["accessToken"]

    async def refresh_access_token(self) -> str:
        """
        Refresh the token pair, joining a refresh already in flight

        Returns:
            The new access token

        Raises:
            ApiClientError: The refresh failed; the stored tokens are cleared
        """
        if self._refresh_future is not None:
            return await self._refresh_future

        future = asyncio.get_running_loop().create_future()
        self._refresh_future = future
        try:
            token = await self._run_refresh()
        except Exception as e:
            self.token_store.clear_tokens()
            future.set_exception(e)
            # waiters re-raise it from their own await
            future.exception()
            raise
        else:
            future.set_result(token)
            return token
        finally:
            self._refresh_future = None
            if not future.done():
                # the refreshing task was cancelled; release the requests waiting on it
                future.set_exception(ApiClientError("Token refresh cancelled"))
                future.exception()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded success envelope

        Raises:
            ApiClientError: Non-2xx response or network failure after retries
        """
        retried_after_refresh = False

        while True:
            sent_token = self._access_token()
            request_headers = dict(headers or {})
            if sent_token:
                request_headers["Authorization"] = f"Bearer {sent_token}"

            response = await self._send(
                method, path, json=json, params=params, files=files, headers=request_headers
            )

            if response.status_code == 401 and not retried_after_refresh and path != REFRESH_PATH:
                retried_after_refresh = True
                tokens = self.token_store.get_tokens()
                if not tokens or not tokens.get("refreshToken"):
                    self.token_store.clear_tokens()
                    raise ApiClientError.from_response(response)

                if self._access_token() == sent_token:
                    await self.refresh_access_token()
                # otherwise another request already refreshed; retry with the new token
                continue

            if response.is_error:
                raise ApiClientError.from_response(response)
            return response.json()

    async def api_request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Like request(), but failures come back as error envelopes instead of exceptions
        """
        try:
            return await self.request(method, path, **kwargs)
        except ApiClientError as e:
            if e.envelope is not None:
                return e.envelope
            return {
                "success": False,
                "error": {
                    "code": str(ErrorCode.INTERNAL_ERROR),
                    "message": e.message,
                    "statusCode": e.status_code or 500,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            }

    async def get(self, path: str, **kwargs) -> Dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Dict[str, Any]:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Dict[str, Any]:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Dict[str, Any]:
        return await self.request("DELETE", path, **kwargs)
