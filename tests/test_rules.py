"""ランタイム評価ルールのユニットテスト"""

from collections.abc import Mapping
from typing import Any

from k1s0_flag_engine.rules import (
    JsonLogicRuleEvaluator,
    is_rule_satisfied,
    lowercase_keys_and_values,
    lowercase_only_leaf_nodes,
)
from structlog.testing import capture_logs

PREMIUM_RULE = {"==": [{"var": "plan"}, "premium"]}


class _RaisingEvaluator:
    def evaluate(self, rule: Mapping[str, Any], properties: Mapping[str, Any]) -> bool:
        raise ValueError("unrecognized operation")


class _RecordingEvaluator:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, Any]] = []

    def evaluate(self, rule: Mapping[str, Any], properties: Mapping[str, Any]) -> bool:
        self.calls.append((rule, properties))
        return True


def test_lowercase_keys_and_values_nested() -> None:
    """キーと文字列値が再帰的に小文字化されること。"""
    result = lowercase_keys_and_values(
        {"Plan": "PREMIUM", "Tags": ["A", "b"], "Nested": {"Key": "Value"}, "Count": 3}
    )
    assert result == {"plan": "premium", "tags": ["a", "b"], "nested": {"key": "value"}, "count": 3}


def test_lowercase_only_leaf_nodes_keeps_keys() -> None:
    """キーはそのままで文字列値のみ小文字化されること。"""
    rule = {"IN": [{"var": "Country"}, ["US", "CA"]]}
    assert lowercase_only_leaf_nodes(rule) == {"IN": [{"var": "country"}, ["us", "ca"]]}


def test_lowercase_leaves_non_strings_untouched() -> None:
    """数値・bool・None は変更されないこと。"""
    assert lowercase_only_leaf_nodes([1, True, None, 2.5]) == [1, True, None, 2.5]


def test_json_logic_equality() -> None:
    """== 演算子が評価されること。"""
    evaluator = JsonLogicRuleEvaluator()
    assert evaluator.evaluate(PREMIUM_RULE, {"plan": "premium"}) is True
    assert evaluator.evaluate(PREMIUM_RULE, {"plan": "free"}) is False


def test_json_logic_non_bool_result_is_not_satisfied() -> None:
    """bool 以外の評価結果は不成立として扱われること。"""
    evaluator = JsonLogicRuleEvaluator()
    assert evaluator.evaluate({"var": "plan"}, {"plan": "premium"}) is False


def test_rule_satisfied_is_case_insensitive() -> None:
    """プロパティとルールの値が大文字小文字を区別せず比較されること。"""
    ctx = {"distinct_id": "u1", "custom_properties": {"Plan": "Premium"}}
    rule = {"==": [{"var": "plan"}, "PREMIUM"]}
    assert is_rule_satisfied(rule, ctx, JsonLogicRuleEvaluator()) is True


def test_rule_satisfied_membership() -> None:
    """in 演算子でリストへの所属を判定できること。"""
    rule = {"in": [{"var": "country"}, ["us", "ca"]]}
    evaluator = JsonLogicRuleEvaluator()
    assert is_rule_satisfied(rule, {"custom_properties": {"country": "US"}}, evaluator) is True
    assert is_rule_satisfied(rule, {"custom_properties": {"country": "JP"}}, evaluator) is False


def test_rule_not_satisfied_without_custom_properties() -> None:
    """custom_properties が無い場合は不成立になること。"""
    evaluator = _RecordingEvaluator()
    assert is_rule_satisfied(PREMIUM_RULE, {"distinct_id": "u1"}, evaluator) is False
    assert evaluator.calls == []


def test_rule_not_satisfied_when_custom_properties_not_a_map() -> None:
    """custom_properties が辞書でない場合は不成立になること。"""
    ctx = {"custom_properties": "plan=premium"}
    assert is_rule_satisfied(PREMIUM_RULE, ctx, JsonLogicRuleEvaluator()) is False


def test_rule_evaluation_error_fails_closed_and_logs() -> None:
    """評価中の例外は伝播せず、ログを残して不成立になること。"""
    ctx = {"custom_properties": {"plan": "premium"}}
    with capture_logs() as logs:
        assert is_rule_satisfied(PREMIUM_RULE, ctx, _RaisingEvaluator()) is False
    assert any(
        entry["log_level"] == "warning" and "unrecognized operation" in entry["error"]
        for entry in logs
    )


def test_rule_evaluator_receives_normalized_input() -> None:
    """評価器には正規化済みのルールとプロパティが渡されること。"""
    evaluator = _RecordingEvaluator()
    ctx = {"custom_properties": {"Plan": "PREMIUM"}}
    is_rule_satisfied({"==": [{"var": "Plan"}, "Premium"]}, ctx, evaluator)
    rule, properties = evaluator.calls[0]
    assert rule == {"==": [{"var": "plan"}, "premium"]}
    assert properties == {"plan": "premium"}
