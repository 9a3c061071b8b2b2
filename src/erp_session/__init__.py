from .auth_service import (
    AuthContext,
    build_headers,
    configure_base_url,
    generate_token,
    get_auth_context,
)
from .client import AuthenticatedClient, create_client
from .config import SessionConfig, StorageKeys
from .credential_store import (
    CredentialStore,
    JsonFileCredentialStore,
    MemoryCredentialStore,
)
from .errors import (
    CredentialStoreError,
    MissingCredentialsError,
    RefreshAttemptsExhaustedError,
    RefreshNetworkError,
    SessionError,
    SessionExpiredError,
    TokenGenerationError,
)
from .models import ApiRequest, Outcome
from .refresh import RefreshCoordinator, RefreshState
from .session import SessionContext
from .token_cache import TokenCache, TokenPair
from .url_utils import clean_base_url

__all__ = [
    "AuthContext",
    "AuthenticatedClient",
    "ApiRequest",
    "CredentialStore",
    "CredentialStoreError",
    "JsonFileCredentialStore",
    "MemoryCredentialStore",
    "MissingCredentialsError",
    "Outcome",
    "RefreshAttemptsExhaustedError",
    "RefreshCoordinator",
    "RefreshNetworkError",
    "RefreshState",
    "SessionConfig",
    "SessionContext",
    "SessionError",
    "SessionExpiredError",
    "StorageKeys",
    "TokenCache",
    "TokenGenerationError",
    "TokenPair",
    "build_headers",
    "clean_base_url",
    "configure_base_url",
    "create_client",
    "generate_token",
    "get_auth_context",
]
