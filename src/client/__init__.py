from .api_client import ApiClient, ApiClientError, InMemoryTokenStore, TokenStore

__all__ = ["ApiClient", "ApiClientError", "InMemoryTokenStore", "TokenStore"]
