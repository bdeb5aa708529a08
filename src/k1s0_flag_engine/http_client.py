"""フラグ定義 HTTP クライアント実装"""

from __future__ import annotations

import secrets
from typing import Any

import httpx

from .client import DefinitionsClient, parse_definitions
from .config import LIB_NAME, LIB_VERSION, LocalFlagsConfig
from .exceptions import DefinitionsFetchError, FlagEngineError, FlagEngineErrorCodes
from .models import FlagDefinition


def generate_traceparent() -> str:
    """W3C traceparent ヘッダー値を生成する。"""
    return f"00-{secrets.token_hex(16)}-{secrets.token_hex(8)}-01"


class HttpDefinitionsClient(DefinitionsClient):
    """httpx を使ったフラグ定義取得クライアント。

    トークンを Basic 認証のユーザー名（パスワード空）として送る。
    """

    def __init__(self, token: str, config: LocalFlagsConfig | None = None) -> None:
        self._token = token
        self._config = config or LocalFlagsConfig()

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._config.request_timeout.total_seconds())

    async def _send(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.get(
            self._config.definitions_url,
            params={"token": self._token, "mp_lib": LIB_NAME, "$lib_version": LIB_VERSION},
            headers={
                "Content-Type": "application/json",
                "traceparent": generate_traceparent(),
            },
            auth=(self._token, ""),
        )

    async def fetch_definitions(self) -> list[FlagDefinition]:
        try:
            if self._config.http_client is not None:
                resp = await self._send(self._config.http_client)
            else:
                async with self._make_client() as client:
                    resp = await self._send(client)
            if not resp.is_success:
                raise DefinitionsFetchError(resp.status_code, resp.text)
            data: Any = resp.json()
        except FlagEngineError:
            raise
        except httpx.HTTPError as e:
            raise FlagEngineError(
                code=FlagEngineErrorCodes.CONNECTION_ERROR,
                message=f"flag definitions request failed: {e}",
                cause=e,
            ) from e
        except ValueError as e:
            raise FlagEngineError(
                code=FlagEngineErrorCodes.INVALID_RESPONSE,
                message=f"failed to decode flag definitions response: {e}",
                cause=e,
            ) from e
        return parse_definitions(data)
