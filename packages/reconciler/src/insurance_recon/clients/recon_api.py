"""Async client for the reconciliation backend REST API."""

import json as jsonlib
from collections.abc import Sequence
from typing import Any, cast

import httpx
import structlog

from insurance_recon.config import get_settings
from insurance_recon.domain.classification import UploadItem
from insurance_recon.domain.types import (
    BatchUploadItem,
    Part,
    Period,
    PeriodSummary,
    PersonalCharge,
    ProcessResult,
    RosterEntry,
    Scheme,
    SchemeChargeDetail,
    SourceFile,
    UnitCharge,
)

logger = structlog.get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ReconAPIError(Exception):
    """Base exception for backend API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(ReconAPIError):
    """Token missing, expired or not allowed."""

    pass


class NotFoundError(ReconAPIError):
    """Requested period or resource does not exist."""

    pass


def extract_error_message(response: httpx.Response, fallback: str = "请求失败") -> str:
    """Pull a human readable message out of an error response.

    Prefers the ``error`` field of a JSON body, then the JSON body itself.
    Bodies that are not JSON (proxy error pages, empty bodies) fall back to
    the HTTP reason phrase.
    """
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or fallback
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return jsonlib.dumps(data, ensure_ascii=False) or fallback


class ReconAPIClient:
    """Async client for the reconciliation backend."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.recon_api_url).rstrip("/")
        if token is None and settings.recon_api_token is not None:
            token = settings.recon_api_token.get_secret_value()
        self._token = token
        self._timeout = timeout if timeout is not None else settings.recon_timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ReconAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # === Generic Request Methods ===

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
        fallback_error: str = "请求失败",
    ) -> httpx.Response:
        """Send a request and raise ReconAPIError for anything but 2xx.

        Failures are not retried; the user re-triggers the action.
        """
        client = await self._get_client()
        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            logger.warning("request_failed", method=method, path=path, error=str(e))
            raise ReconAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            message = extract_error_message(response, fallback_error)
            logger.warning(
                "api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            error_cls: type[ReconAPIError] = ReconAPIError
            if response.status_code in (401, 403):
                error_cls = AuthenticationError
            elif response.status_code == 404:
                error_cls = NotFoundError
            raise error_cls(message, status_code=response.status_code, details=message)

        return response

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
        fallback_error: str = "请求失败",
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Send a request and decode its JSON body."""
        response = await self._send(
            method,
            path,
            params=params,
            json=json,
            data=data,
            files=files,
            fallback_error=fallback_error,
        )
        if not response.content:
            return {}
        try:
            return cast(dict[str, Any] | list[dict[str, Any]], response.json())
        except ValueError as e:
            raise ReconAPIError(
                "Invalid JSON response",
                status_code=response.status_code,
                details=response.text[:500],
            ) from e

    async def _download(
        self, path: str, params: dict[str, Any] | None = None, fallback_error: str = "导出失败"
    ) -> bytes:
        response = await self._send("GET", path, params=params, fallback_error=fallback_error)
        return response.content

    @staticmethod
    def _extract_items(result: Any) -> list[dict[str, Any]]:
        """Return list of items from a list or wrapped response."""
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            items = result.get("items")
            if isinstance(items, list):
                return items
        return []

    @staticmethod
    def _as_dict(result: Any) -> dict[str, Any]:
        return result if isinstance(result, dict) else {}

    @staticmethod
    def _file_part(field: str, file_name: str, content: bytes) -> tuple[str, tuple[str, bytes, str]]:
        return (field, (file_name, content, XLSX_MEDIA_TYPE))

    # === Period Endpoints ===

    async def list_periods(self) -> list[Period]:
        """List periods, oldest first."""
        result = await self._request("GET", "/periods")
        return [Period.from_dict(item) for item in self._extract_items(result)]

    async def create_period(self, year_month: str) -> Period:
        result = await self._request("POST", "/periods", json={"year_month": year_month})
        return Period.from_dict(self._as_dict(result))

    async def delete_period(self, period_id: int) -> dict[str, Any]:
        result = await self._request("DELETE", f"/periods/{period_id}")
        return self._as_dict(result)

    async def reset_period(self, period_id: int) -> dict[str, Any]:
        """Drop every file and aggregate of a period on the server."""
        result = await self._request("POST", f"/periods/{period_id}/reset")
        return self._as_dict(result)

    # === Source File Endpoints ===

    async def list_files(self, period_id: int) -> list[SourceFile]:
        result = await self._request("GET", f"/periods/{period_id}/files")
        return [SourceFile.from_dict(item) for item in self._extract_items(result)]

    async def upload_source_file(
        self, period_id: int, item: UploadItem
    ) -> tuple[SourceFile, int]:
        """Upload one classified file. Returns the stored file and row count."""
        result = await self._request(
            "POST",
            f"/periods/{period_id}/files",
            data={"scheme": item.scheme.value, "part": item.part.value},
            files=[self._file_part("file", item.file_name, item.content)],
            fallback_error="上传失败",
        )
        payload = self._as_dict(result)
        return SourceFile.from_dict(payload.get("file", {})), int(payload.get("imported", 0))

    async def upload_files_batch(
        self, period_id: int, items: Sequence[UploadItem]
    ) -> list[BatchUploadItem]:
        """Upload classified normal files in one multipart request.

        The i-th ``scheme``/``part`` field belongs to the i-th file.
        """
        result = await self._request(
            "POST",
            f"/periods/{period_id}/files/batch",
            data={
                "scheme": [item.scheme.value for item in items],
                "part": [item.part.value for item in items],
            },
            files=[self._file_part("files", item.file_name, item.content) for item in items],
            fallback_error="批量上传失败",
        )
        return [BatchUploadItem.from_dict(item) for item in self._extract_items(result)]

    async def upload_adjustments_batch(
        self, period_id: int, uploads: Sequence[tuple[str, bytes]]
    ) -> list[BatchUploadItem]:
        """Upload adjustment files; the server infers part and scheme."""
        result = await self._request(
            "POST",
            f"/periods/{period_id}/adjustments/batch",
            files=[self._file_part("files", name, content) for name, content in uploads],
            fallback_error="补退文件批量上传失败",
        )
        return [BatchUploadItem.from_dict(item) for item in self._extract_items(result)]

    async def clear_files(self, period_id: int) -> dict[str, Any]:
        result = await self._request("POST", f"/periods/{period_id}/files/clear")
        return self._as_dict(result)

    async def clear_adjustments(self, period_id: int) -> dict[str, Any]:
        result = await self._request("POST", f"/periods/{period_id}/adjustments/clear")
        return self._as_dict(result)

    # === Processing Endpoints ===

    async def process_period(self, period_id: int) -> ProcessResult:
        """Aggregate normal files. Returns summary and both charge tables."""
        result = await self._request("POST", f"/periods/{period_id}/process")
        return ProcessResult.from_dict(self._as_dict(result))

    async def process_adjustments(self, period_id: int) -> dict[str, Any]:
        """Accumulate adjustment deltas into the existing charges."""
        result = await self._request("POST", f"/periods/{period_id}/adjustments/process")
        return self._as_dict(result)

    async def get_summary(self, period_id: int) -> list[PeriodSummary]:
        result = await self._request("GET", f"/periods/{period_id}/summary")
        return [PeriodSummary.from_dict(item) for item in self._extract_items(result)]

    async def get_personal_charges(self, period_id: int) -> list[PersonalCharge]:
        result = await self._request(
            "GET", f"/periods/{period_id}/charges", params={"part": Part.PERSONAL.value}
        )
        return [PersonalCharge.from_dict(item) for item in self._extract_items(result)]

    async def get_unit_charges(self, period_id: int) -> list[UnitCharge]:
        result = await self._request(
            "GET", f"/periods/{period_id}/charges", params={"part": Part.UNIT.value}
        )
        return [UnitCharge.from_dict(item) for item in self._extract_items(result)]

    async def get_scheme_charges(
        self,
        period_id: int,
        scheme: Scheme,
        part: Part,
        is_adjustment: bool | None = None,
    ) -> list[SchemeChargeDetail]:
        params: dict[str, Any] = {"scheme": scheme.value, "part": part.value}
        if is_adjustment is not None:
            params["is_adjustment"] = "true" if is_adjustment else "false"
        result = await self._request(
            "GET", f"/periods/{period_id}/charges/scheme", params=params
        )
        return [SchemeChargeDetail.from_dict(item) for item in self._extract_items(result)]

    # === Export Endpoints ===

    async def download_charges_excel(self, period_id: int, part: Part) -> bytes:
        return await self._download(
            f"/periods/{period_id}/charges/export", params={"part": part.value}
        )

    async def download_scheme_charges_excel(
        self, period_id: int, scheme: Scheme, part: Part
    ) -> bytes:
        return await self._download(
            f"/periods/{period_id}/charges/scheme/export",
            params={"scheme": scheme.value, "part": part.value},
        )

    # === Roster Endpoints ===

    async def get_roster(self, period_id: int) -> list[RosterEntry]:
        result = await self._request("GET", f"/periods/{period_id}/roster")
        return [RosterEntry.from_dict(item) for item in self._extract_items(result)]

    async def upload_roster(self, period_id: int, file_name: str, content: bytes) -> int:
        """Upload a roster spreadsheet. Returns the number of imported rows."""
        result = await self._request(
            "POST",
            f"/periods/{period_id}/roster",
            files=[self._file_part("file", file_name, content)],
            fallback_error="花名册上传失败",
        )
        return int(self._as_dict(result).get("imported", 0))

    async def import_latest_roster(self, period_id: int) -> dict[str, Any]:
        """Copy the most recent roster on file into this period."""
        result = await self._request(
            "POST", f"/periods/{period_id}/roster/import", fallback_error="一键导入失败"
        )
        return self._as_dict(result)

    async def download_roster_template(self) -> bytes:
        return await self._download("/roster-template", fallback_error="模板下载失败")
