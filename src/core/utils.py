"""Shared helpers for talking to the external AI provider over HTTP."""

import logging

import httpx

from src.core.exceptions import ConfigurationError, NetworkError, ProviderError

logger = logging.getLogger(__name__)


def require_api_key(api_key: str, env_var: str) -> str:
    """Return *api_key* or raise :class:`ConfigurationError` if it is blank."""
    if not api_key or not api_key.strip():
        logger.error("Missing %s environment variable", env_var)
        raise ConfigurationError(detail=f"API configuration error: {env_var} is not set")
    return api_key


async def provider_post(
    client: httpx.AsyncClient,
    url: str,
    provider: str,
    **kwargs,
) -> httpx.Response:
    """POST to a provider endpoint and translate failures into domain errors.

    Transport failures become :class:`NetworkError`; any non-2xx answer
    becomes :class:`ProviderError` carrying the status code and raw body.
    Nothing is retried.

    Args:
        client: An open ``httpx.AsyncClient``.
        url: Absolute endpoint URL.
        provider: Human-readable provider name used in messages.
        **kwargs: Passed through to ``client.post`` (headers, json, files, data).

    Returns:
        The successful ``httpx.Response``.
    """
    try:
        response = await client.post(url, **kwargs)
    except httpx.TimeoutException as exc:
        logger.warning("%s request timed out: %s", provider, exc)
        raise NetworkError(detail=f"{provider} request timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        logger.warning("%s connection error: %s", provider, exc)
        raise NetworkError(detail=f"Failed to connect to {provider}: {exc}") from exc

    if response.is_error:
        body = response.text
        logger.error("%s API error: %s %s", provider, response.status_code, body[:500])
        raise ProviderError(
            detail=f"{provider} API error: {response.status_code} - {body}",
            provider_status=response.status_code,
            provider_body=body,
        )
    return response
