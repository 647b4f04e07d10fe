from token_provider.config import ProviderConfig
from token_provider.token_provider import UNAVAILABLE_MESSAGE, TokenProvider, get_token_report

__all__ = ["ProviderConfig", "TokenProvider", "UNAVAILABLE_MESSAGE", "get_token_report"]
