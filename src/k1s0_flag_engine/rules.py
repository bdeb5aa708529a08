"""ランタイム評価ルール（JsonLogic）"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import structlog
from json_logic import jsonLogic

from .models import FlagContext

logger = structlog.get_logger(__name__)

CUSTOM_PROPERTIES_KEY = "custom_properties"


class RuleEvaluator(Protocol):
    """述語木をプロパティに対して評価するプロトコル。"""

    def evaluate(self, rule: Mapping[str, Any], properties: Mapping[str, Any]) -> bool: ...


class JsonLogicRuleEvaluator:
    """json_logic を使った RuleEvaluator 実装。

    評価結果が bool の True の場合のみ成立とみなす。
    """

    def evaluate(self, rule: Mapping[str, Any], properties: Mapping[str, Any]) -> bool:
        result = jsonLogic(rule, properties)
        return isinstance(result, bool) and result


def lowercase_keys_and_values(value: Any) -> Any:
    """辞書のキーと文字列値を再帰的に小文字化する。"""
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, Mapping):
        return {str(k).lower(): lowercase_keys_and_values(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [lowercase_keys_and_values(v) for v in value]
    return value


def lowercase_only_leaf_nodes(value: Any) -> Any:
    """文字列値のみ小文字化する。キー（演算子）はそのまま残す。"""
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, Mapping):
        return {k: lowercase_only_leaf_nodes(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [lowercase_only_leaf_nodes(v) for v in value]
    return value


def is_rule_satisfied(
    rule: Mapping[str, Any],
    flag_context: FlagContext,
    evaluator: RuleEvaluator,
) -> bool:
    """コンテキストの custom_properties がルールを満たすか判定する。

    custom_properties が無い、または辞書でない場合は不成立。
    評価中の例外は呼び出し側へ伝播させず、ログを残して不成立とする。

    Args:
        rule: JsonLogic 形式の述語木
        flag_context: 呼び出し側のフラグコンテキスト
        evaluator: ルール評価器

    Returns:
        ルールが成立すれば True
    """
    custom_properties = flag_context.get(CUSTOM_PROPERTIES_KEY)
    if not isinstance(custom_properties, Mapping):
        return False

    properties = lowercase_keys_and_values(custom_properties)
    normalized_rule = lowercase_only_leaf_nodes(rule)
    try:
        return evaluator.evaluate(normalized_rule, properties)
    except Exception as e:
        logger.warning("runtime rule evaluation failed", error=str(e), rule=rule)
        return False
