# src/erp_session/authenticator.py

import logging

from .config import SessionConfig
from .errors import mask_token
from .models import ApiRequest
from .token_cache import TokenCache
from .url_utils import is_absolute_url, join_api_url

lib_logger = logging.getLogger("erp_session")


class RequestAuthenticator:
    """
    Outbound stage: resolves relative URLs against the stored base URL and
    attaches the current bearer token.

    Requests flagged skip_auth (token generation, the refresh call) pass
    through unchanged. A missing base URL is not an error here: the request
    keeps its URL and the caller is expected to have supplied an absolute one.
    """

    def __init__(self, tokens: TokenCache, config: SessionConfig):
        self.tokens = tokens
        self.config = config

    async def __call__(self, request: ApiRequest) -> ApiRequest:
        if request.skip_auth:
            return request

        if not is_absolute_url(request.url):
            base_url = await self.tokens.get_base_url()
            if base_url:
                request = request.with_url(
                    join_api_url(base_url, self.config.api_prefix, request.url)
                )
            else:
                lib_logger.warning(
                    f"No base URL configured; sending '{request.url}' unresolved."
                )

        access = await self.tokens.access_token()
        if access:
            request = request.with_bearer(access)
            lib_logger.debug(
                f"Attached bearer {mask_token(access)} to {request.method} {request.url}"
            )
        return request
