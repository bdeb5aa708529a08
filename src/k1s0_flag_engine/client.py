"""DefinitionsClient 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .exceptions import FlagEngineError, FlagEngineErrorCodes
from .models import FlagDefinition


class DefinitionsClient(ABC):
    """フラグ定義の取得元。"""

    @abstractmethod
    async def fetch_definitions(self) -> list[FlagDefinition]:
        """全フラグ定義を取得する。

        Raises:
            FlagEngineError: 取得またはパースに失敗した場合
        """
        ...


def parse_definitions(data: Any) -> list[FlagDefinition]:
    """``{"flags": [...]}`` 形式のレスポンスをパースする。"""
    if not isinstance(data, dict):
        raise FlagEngineError(
            code=FlagEngineErrorCodes.INVALID_RESPONSE,
            message="flag definitions response is not a JSON object",
        )
    flags = data.get("flags")
    if flags is None:
        return []
    if not isinstance(flags, list):
        raise FlagEngineError(
            code=FlagEngineErrorCodes.INVALID_RESPONSE,
            message="flag definitions response field 'flags' is not a list",
        )
    try:
        return [FlagDefinition.from_dict(f) for f in flags]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise FlagEngineError(
            code=FlagEngineErrorCodes.INVALID_RESPONSE,
            message=f"failed to parse flag definitions: {e}",
            cause=e,
        ) from e
