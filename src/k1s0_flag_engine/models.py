"""フラグ定義データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

FlagContext = Mapping[str, Any]


def freeze(value: Any) -> Any:
    """辞書を MappingProxyType、リストをタプルに再帰的に変換する。"""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class Variant:
    """フラグバリアント。"""

    key: str
    value: Any = None
    is_control: bool = False
    split: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", freeze(self.value))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Variant:
        return cls(
            key=data["key"],
            value=data.get("value"),
            is_control=bool(data.get("is_control", False)),
            split=float(data.get("split", 0.0)),
        )


@dataclass(frozen=True)
class Rollout:
    """ロールアウト条件。

    ``runtime_evaluation_rule`` は JsonLogic 形式の述語木、
    ``variant_splits`` はこのロールアウトだけに適用されるバリアントの重み。
    """

    rollout_percentage: float
    runtime_evaluation_rule: Mapping[str, Any] | None = None
    variant_override: str | None = None
    variant_splits: Mapping[str, float] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "runtime_evaluation_rule", freeze(self.runtime_evaluation_rule))
        object.__setattr__(self, "variant_splits", freeze(self.variant_splits))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Rollout:
        override = data.get("variant_override")
        splits = data.get("variant_splits")
        return cls(
            rollout_percentage=float(data.get("rollout_percentage", 0.0)),
            runtime_evaluation_rule=data.get("runtime_evaluation_rule"),
            variant_override=override["key"] if override else None,
            variant_splits=(
                {k: float(v) for k, v in splits.items()} if splits is not None else None
            ),
        )


@dataclass(frozen=True)
class RuleSet:
    """バリアント・ロールアウト・テストユーザー上書きの集合。"""

    variants: tuple[Variant, ...] = ()
    rollouts: tuple[Rollout, ...] = ()
    test_users: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "test_users", freeze(self.test_users))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuleSet:
        test = data.get("test")
        return cls(
            variants=tuple(Variant.from_dict(v) for v in data.get("variants") or []),
            rollouts=tuple(Rollout.from_dict(r) for r in data.get("rollout") or []),
            test_users=dict(test["users"]) if test and test.get("users") is not None else None,
        )


@dataclass(frozen=True)
class FlagDefinition:
    """ローカル評価用のフラグ定義。"""

    id: str
    key: str
    name: str = ""
    status: str = ""
    project_id: int = 0
    context: str = "distinct_id"
    ruleset: RuleSet = field(default_factory=RuleSet)
    experiment_id: str | None = None
    is_experiment_active: bool | None = None
    hash_salt: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlagDefinition:
        """API レスポンスの辞書から FlagDefinition を生成する。"""
        return cls(
            id=data.get("id", ""),
            key=data["key"],
            name=data.get("name", ""),
            status=data.get("status", ""),
            project_id=data.get("project_id", 0),
            context=data.get("context", "distinct_id"),
            ruleset=RuleSet.from_dict(data.get("ruleset") or {}),
            experiment_id=data.get("experiment_id"),
            is_experiment_active=data.get("is_experiment_active"),
            hash_salt=data.get("hash_salt"),
        )


@dataclass(frozen=True)
class SelectedVariant:
    """フラグ評価結果。

    ``variant_key`` が None の場合は「判定なし」を意味し、呼び出し側の
    フォールバックとして扱われる。
    """

    variant_key: str | None = None
    variant_value: Any = None
    experiment_id: str | None = None
    is_experiment_active: bool | None = None
    is_qa_tester: bool | None = None
