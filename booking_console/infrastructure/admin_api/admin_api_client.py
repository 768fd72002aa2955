from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from booking_console.application.dto.admin_api import ApiEnvelopeDTO, OptionDTO, PageDTO
from booking_console.application.exceptions import CatalogContractError, CatalogUpstreamError
from booking_console.core.config import settings
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.search_session import PageResult


class AdminApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        auth_header: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.ADMIN_API_BASE_URL).rstrip("/")
        self._token = token if token is not None else settings.ADMIN_API_TOKEN
        self._auth_header = auth_header or settings.ADMIN_AUTH_HEADER
        self._client = httpx.AsyncClient(
            base_url=self._base_url + "/",
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def get_data(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET an enveloped endpoint and return its `data` member."""
        body = await self.request("GET", path, params=params)
        return self._unwrap(path, body).data

    async def get_options(self, path: str, params: dict[str, Any] | None = None) -> list[Option]:
        data = await self.get_data(path, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CatalogContractError(f"Expected a list from {path}, got {type(data).__name__}")

        options: list[Option] = []
        for row in data:
            try:
                options.append(OptionDTO.model_validate(row).to_option())
            except ValidationError:
                self._logger.warning("Skipped malformed option", extra={"path": path, "row": repr(row)[:200]})
        return options

    async def get_page(self, path: str, params: dict[str, Any], page: int, page_size: int) -> PageResult:
        body = await self.request("GET", path, params=params)
        self._unwrap(path, body)
        try:
            return PageDTO.model_validate(body).to_page(page, page_size)
        except ValidationError as e:
            raise CatalogContractError(f"Malformed page from {path}: {e.error_count()} errors") from e

    async def post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self.request("POST", path, json=payload)
        if not isinstance(body, dict):
            raise CatalogContractError(f"Expected an object from {path}")
        return body

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {
            self._auth_header: self._token or "",
            "Accept": "application/json",
        }
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            resp = await self._client.request(
                method,
                path.lstrip("/"),
                params=clean_params or None,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            self._logger.error("Admin API unreachable", extra={"path": path, "error": str(e)})
            raise CatalogUpstreamError(f"Admin API request failed for {path}: {e}") from e

        if resp.status_code >= 400:
            message = _error_message(resp)
            self._logger.error(
                "Admin API error",
                extra={"path": path, "status": resp.status_code, "error": message},
            )
            raise CatalogUpstreamError(f"Admin API error {resp.status_code} for {path}: {message}")

        try:
            return resp.json()
        except ValueError as e:
            raise CatalogContractError(f"Failed to decode JSON from admin API for {path}: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()

    def _unwrap(self, path: str, body: Any) -> ApiEnvelopeDTO:
        if not isinstance(body, dict):
            raise CatalogContractError(f"Expected an object from {path}")
        try:
            envelope = ApiEnvelopeDTO.model_validate(body)
        except ValidationError as e:
            raise CatalogContractError(f"Malformed envelope from {path}") from e
        if not envelope.status:
            raise CatalogContractError(envelope.message or f"Admin API rejected {path}")
        return envelope


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.text[:500]
