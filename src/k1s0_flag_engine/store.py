"""DefinitionStore — フラグ定義スナップショットと asyncio Task ベースのポーリング"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
from collections.abc import Mapping
from types import MappingProxyType

import structlog

from .client import DefinitionsClient
from .config import LocalFlagsConfig
from .exceptions import FlagEngineError, FlagEngineErrorCodes
from .models import FlagDefinition

logger = structlog.get_logger(__name__)


def _with_sorted_variants(flag: FlagDefinition) -> FlagDefinition:
    variants = tuple(sorted(flag.ruleset.variants, key=lambda v: v.key))
    return dataclasses.replace(
        flag, ruleset=dataclasses.replace(flag.ruleset, variants=variants)
    )


class DefinitionStore:
    """公開済みのフラグ定義スナップショットを保持する。

    スナップショットは公開後に変更されない読み取り専用マッピングで、
    置き換えは属性への単一代入で行う。読み手は呼び出しごとに一度だけ
    参照を取得すれば、古いスナップショットか新しいスナップショットの
    どちらか一方だけを見ることになる。書き手はポーリングタスクのみ。
    """

    def __init__(self, client: DefinitionsClient, config: LocalFlagsConfig | None = None) -> None:
        self._client = client
        self._config = config or LocalFlagsConfig()
        self._definitions: Mapping[str, FlagDefinition] = MappingProxyType({})
        self._ready = False
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._lifecycle_lock = asyncio.Lock()

    def snapshot(self) -> Mapping[str, FlagDefinition]:
        """現在のスナップショットを返す。"""
        return self._definitions

    def get(self, flag_key: str) -> FlagDefinition | None:
        return self._definitions.get(flag_key)

    def is_ready(self) -> bool:
        """一度でも取得に成功していれば True。"""
        return self._ready

    @property
    def is_polling(self) -> bool:
        return self._task is not None

    async def fetch(self) -> None:
        """フラグ定義を一度取得して新しいスナップショットを公開する。

        失敗した場合、公開済みのスナップショットはそのまま残る。

        Raises:
            FlagEngineError: 取得またはパースに失敗した場合
        """
        flags = await self._client.fetch_definitions()
        definitions = {flag.key: _with_sorted_variants(flag) for flag in flags}
        self._definitions = MappingProxyType(definitions)
        self._ready = True
        logger.debug("flag definitions published", flag_count=len(definitions))

    async def start_polling(self) -> None:
        """初回取得を同期的に行い、有効ならポーリングタスクを開始する。

        ポーリング中に再度呼ばれた場合は何もしない。同時に呼ばれた場合も
        作られるタスクは一つだけ。ポーリング無効時はタスクが無いため、
        呼ばれるたびに一度取得し直す。

        Raises:
            FlagEngineError: 初回取得に失敗した場合
        """
        async with self._lifecycle_lock:
            if self._task is not None:
                return

            try:
                await self.fetch()
            except FlagEngineError as e:
                raise FlagEngineError(
                    code=FlagEngineErrorCodes.INITIAL_FETCH_FAILED,
                    message=f"initial flag definitions fetch failed: {e}",
                    cause=e,
                ) from e

            if self._config.enable_polling:
                self._stop_event = asyncio.Event()
                self._task = asyncio.create_task(self._poll_loop(self._stop_event))
                logger.info(
                    "flag definitions polling started",
                    interval_seconds=self._config.polling_interval.total_seconds(),
                )

    async def stop_polling(self) -> None:
        """ポーリングタスクに停止を通知し、終了するまで待つ。"""
        async with self._lifecycle_lock:
            if self._task is None or self._stop_event is None:
                return
            self._stop_event.set()
            try:
                await self._task
            finally:
                self._task = None
                self._stop_event = None
            logger.info("flag definitions polling stopped")

    async def _poll_loop(self, stop_event: asyncio.Event) -> None:
        """ポーリングループ。"""
        interval = self._config.polling_interval.total_seconds()
        while not stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            if stop_event.is_set():
                return
            try:
                await self.fetch()
            except Exception as e:
                logger.warning("error polling for flag definitions", error=str(e))
