"""flag_engine ライブラリの例外型定義"""

from __future__ import annotations


class FlagEngineError(Exception):
    """flag_engine ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class DefinitionsFetchError(FlagEngineError):
    """フラグ定義 API が 2xx 以外を返したときのエラー。"""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            code=FlagEngineErrorCodes.HTTP_ERROR,
            message=f"unexpected status code: {status_code}, body: {body}",
        )


class FlagEngineErrorCodes:
    """エラーコード定数。"""

    HTTP_ERROR: str = "HTTP_ERROR"
    CONNECTION_ERROR: str = "CONNECTION_ERROR"
    INVALID_RESPONSE: str = "INVALID_RESPONSE"
    INITIAL_FETCH_FAILED: str = "INITIAL_FETCH_FAILED"
