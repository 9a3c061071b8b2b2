# src/erp_session/pipeline.py

from typing import Awaitable, Callable, Sequence

import httpx

from .models import ApiRequest, Outcome
from .transport import HttpTransport

RequestStage = Callable[[ApiRequest], Awaitable[ApiRequest]]
ResponseStage = Callable[[Outcome], Awaitable[Outcome]]


async def check_status(outcome: Outcome) -> Outcome:
    """Turn a non-2xx response into an httpx.HTTPStatusError outcome."""
    response = outcome.response
    if outcome.error is None and response is not None and not response.is_success:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return Outcome(outcome.request, error=e)
    return outcome


class RequestPipeline:
    """
    Fixed-order runner: request stages, then the transport, then response
    stages. Network errors are captured into the Outcome so response stages
    see them; whatever error remains at the end is raised to the caller.
    """

    def __init__(
        self,
        transport: HttpTransport,
        request_stages: Sequence[RequestStage] = (),
        response_stages: Sequence[ResponseStage] = (),
    ):
        self.transport = transport
        self.request_stages = list(request_stages)
        self.response_stages = list(response_stages)

    async def execute(self, request: ApiRequest) -> httpx.Response:
        for stage in self.request_stages:
            request = await stage(request)

        try:
            response = await self.transport.send(request)
            outcome = Outcome(request, response=response)
        except httpx.RequestError as e:
            outcome = Outcome(request, error=e)

        for stage in self.response_stages:
            outcome = await stage(outcome)
        return outcome.unwrap()
