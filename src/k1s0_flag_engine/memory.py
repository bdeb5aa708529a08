"""InMemoryDefinitionsClient 実装"""

from __future__ import annotations

from .client import DefinitionsClient
from .exceptions import FlagEngineError
from .models import FlagDefinition


class InMemoryDefinitionsClient(DefinitionsClient):
    """テスト・オフライン起動用のインメモリ定義ソース。"""

    def __init__(self, flags: list[FlagDefinition] | None = None) -> None:
        self._flags: list[FlagDefinition] = list(flags or [])
        self._error: FlagEngineError | None = None
        self.fetch_count = 0

    def set_flags(self, flags: list[FlagDefinition]) -> None:
        """次回以降の取得で返すフラグ定義を置き換える。"""
        self._flags = list(flags)

    def set_error(self, error: FlagEngineError | None) -> None:
        """次回以降の取得で送出するエラーを設定する。None で解除。"""
        self._error = error

    async def fetch_definitions(self) -> list[FlagDefinition]:
        self.fetch_count += 1
        if self._error is not None:
            raise self._error
        return list(self._flags)
