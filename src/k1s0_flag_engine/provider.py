"""LocalFlagsProvider — ローカル評価のファサード"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any

from .client import DefinitionsClient
from .config import LocalFlagsConfig
from .exposure import ExposureReporter, Tracker
from .http_client import HttpDefinitionsClient
from .models import FlagContext, SelectedVariant
from .resolver import VariantResolver
from .rules import RuleEvaluator
from .store import DefinitionStore


class LocalFlagsProvider:
    """キャッシュ済みのフラグ定義でフラグを評価するプロバイダー。

    評価系のメソッドは I/O を行わず、例外も送出しない。フラグ基盤の問題は
    すべてフォールバック値として呼び出し側に返る。

    Example:
        >>> async with LocalFlagsProvider("token", tracker=track) as flags:
        ...     flags.is_enabled("new-checkout", {"distinct_id": "user-1"})
    """

    def __init__(
        self,
        token: str,
        config: LocalFlagsConfig | None = None,
        tracker: Tracker | None = None,
        *,
        definitions_client: DefinitionsClient | None = None,
        rule_evaluator: RuleEvaluator | None = None,
    ) -> None:
        self._config = config or LocalFlagsConfig()
        client = definitions_client or HttpDefinitionsClient(token, self._config)
        self._store = DefinitionStore(client, self._config)
        self._resolver = VariantResolver(rule_evaluator)
        self._reporter = ExposureReporter(tracker)

    @property
    def store(self) -> DefinitionStore:
        return self._store

    async def __aenter__(self) -> LocalFlagsProvider:
        await self.start_polling_for_definitions()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop_polling_for_definitions()

    async def start_polling_for_definitions(self) -> None:
        """定義を即時取得し、設定で有効ならバックグラウンドポーリングを開始する。"""
        await self._store.start_polling()

    async def stop_polling_for_definitions(self) -> None:
        await self._store.stop_polling()

    async def refresh_definitions(self) -> None:
        """定義を一度だけ取得し直す。"""
        await self._store.fetch()

    def are_flags_ready(self) -> bool:
        return self._store.is_ready()

    def get_variant(
        self,
        flag_key: str,
        fallback: SelectedVariant,
        flag_context: FlagContext,
        report_exposure: bool = True,
    ) -> SelectedVariant:
        """フラグのバリアントを決定する。

        フラグが存在しない、またはフラグの context 属性がコンテキストに
        無い場合は fallback をそのまま返す。

        Args:
            flag_key: フラグキー
            fallback: 判定なしの場合に返す値
            flag_context: distinct_id などを含む評価コンテキスト
            report_exposure: True なら決定時に exposure イベントを送る

        Returns:
            決定したバリアント、または fallback
        """
        start = time.perf_counter()
        flag = self._store.get(flag_key)
        if flag is None:
            return fallback

        selected = self._resolver.resolve(flag, flag_context)
        if selected is None:
            return fallback

        if report_exposure:
            latency = timedelta(seconds=time.perf_counter() - start)
            self._reporter.report(flag_key, selected, flag_context, latency)
        return selected

    def get_variant_value(self, flag_key: str, fallback_value: Any, flag_context: FlagContext) -> Any:
        variant = self.get_variant(flag_key, SelectedVariant(variant_value=fallback_value), flag_context)
        return variant.variant_value

    def is_enabled(self, flag_key: str, flag_context: FlagContext) -> bool:
        """バリアント値が bool の True の場合のみ True。"""
        return self.get_variant_value(flag_key, False, flag_context) is True

    def get_all_variants(self, flag_context: FlagContext) -> dict[str, SelectedVariant]:
        """全フラグを評価する。exposure は送らず、判定なしのフラグは含めない。"""
        variants: dict[str, SelectedVariant] = {}
        for flag_key, flag in self._store.snapshot().items():
            selected = self._resolver.resolve(flag, flag_context)
            if selected is not None:
                variants[flag_key] = selected
        return variants

    def track_exposure_event(
        self, flag_key: str, variant: SelectedVariant, flag_context: FlagContext
    ) -> None:
        """exposure イベントを手動で送る。"""
        self._reporter.report(flag_key, variant, flag_context)
