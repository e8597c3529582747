"""Shared fixtures for auth and account tests: mocked aiohttp responses and clients."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from vi_access.config.settings import DEFAULT_HTTP_CLIENT_NAME
from vi_access.http.client import DurableHttpClient, HttpClientFactory, HttpClientHandle
from vi_access.http.policy import NO_RETRY


def build_response(status=200, body="", headers=None, url="https://management.azure.com/x"):
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.url = url
    response.text = AsyncMock(return_value=body)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=False)
    return response


def build_session(*responses):
    """Mock aiohttp session serving ``responses`` in order (the last one repeats)."""
    session = MagicMock()
    session.closed = False
    queue = list(responses)

    def request(*args, **kwargs):
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    session.request = MagicMock(side_effect=request)

    async def close():
        session.closed = True

    session.close = AsyncMock(side_effect=close)
    return session


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def make_http():
    """
    Build a DurableHttpClient whose handle sends through a mocked session.

    Returns (durable_client, session); ``session.request.call_args_list``
    records every attempt.
    """

    def build(*responses, policy=NO_RETRY):
        session = build_session(*responses)
        handle = HttpClientHandle(DEFAULT_HTTP_CLIENT_NAME, session, policy)
        factory = MagicMock(spec=HttpClientFactory)
        factory.create.return_value = handle
        return DurableHttpClient(factory, DEFAULT_HTTP_CLIENT_NAME), session

    return build


@pytest.fixture
def arm_source():
    """ARM token source returning "arm-token"."""
    source = MagicMock()
    source.get_arm_token = AsyncMock(return_value="arm-token")
    return source
