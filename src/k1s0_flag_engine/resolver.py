"""ロールアウト／バリアント解決"""

from __future__ import annotations

from typing import Any

from .bucketing import normalized_hash
from .models import FlagContext, FlagDefinition, Rollout, SelectedVariant, Variant
from .rules import JsonLogicRuleEvaluator, RuleEvaluator, is_rule_satisfied

SUBJECT_KEY = "distinct_id"


def stringify_context_value(value: Any) -> str:
    """バケッティング用にコンテキスト値を文字列化する。"""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class VariantResolver:
    """フラグ定義とコンテキストからバリアントを決定する。

    評価はスナップショットと呼び出し側のコンテキストのみに依存する純粋な処理で、
    状態を持たないため複数の呼び出し元から同時に使える。
    """

    def __init__(self, rule_evaluator: RuleEvaluator | None = None) -> None:
        self._rule_evaluator = rule_evaluator or JsonLogicRuleEvaluator()

    def resolve(self, flag: FlagDefinition, flag_context: FlagContext) -> SelectedVariant | None:
        """テストユーザー上書き、ロールアウトの順に評価する。

        Returns:
            決定したバリアント。判定なしの場合は None
        """
        if flag.context not in flag_context:
            return None

        test_variant = self.get_test_user_override(flag, flag_context)
        if test_variant is not None:
            return test_variant

        subject = stringify_context_value(flag_context[flag.context])
        rollout = self.get_assigned_rollout(flag, subject, flag_context)
        if rollout is None:
            return None
        return self.get_assigned_variant(flag, subject, rollout)

    def get_test_user_override(
        self, flag: FlagDefinition, flag_context: FlagContext
    ) -> SelectedVariant | None:
        test_users = flag.ruleset.test_users
        if not test_users:
            return None
        distinct_id = flag_context.get(SUBJECT_KEY)
        if not isinstance(distinct_id, str):
            return None
        variant_key = test_users.get(distinct_id)
        if variant_key is None:
            return None
        return self.get_matching_variant(variant_key, flag, is_qa_tester=True)

    def get_assigned_rollout(
        self, flag: FlagDefinition, subject: str, flag_context: FlagContext
    ) -> Rollout | None:
        """配列順に評価し、最初に成立したロールアウトを返す。"""
        for i, rollout in enumerate(flag.ruleset.rollouts):
            if flag.hash_salt is not None:
                salt = f"{flag.key}{flag.hash_salt}{i}"
            else:
                salt = f"{flag.key}rollout"

            if normalized_hash(subject, salt) >= rollout.rollout_percentage:
                continue
            if rollout.runtime_evaluation_rule is not None and not is_rule_satisfied(
                rollout.runtime_evaluation_rule, flag_context, self._rule_evaluator
            ):
                continue
            return rollout
        return None

    def get_assigned_variant(
        self, flag: FlagDefinition, subject: str, rollout: Rollout
    ) -> SelectedVariant | None:
        """ロールアウト内でバリアントを選ぶ。

        variant_override が定義済みバリアントに一致すればそれを返す。
        一致しなければ split による重み付き選択に進む。
        """
        if rollout.variant_override is not None:
            overridden = self.get_matching_variant(rollout.variant_override, flag)
            if overridden is not None:
                return overridden

        salt = f"{flag.key}{flag.hash_salt or ''}variant"
        variant_hash = normalized_hash(subject, salt)

        variants = sorted(flag.ruleset.variants, key=lambda v: v.key)
        if rollout.variant_splits:
            splits = rollout.variant_splits
            variants = [
                Variant(v.key, v.value, v.is_control, splits[v.key]) if v.key in splits else v
                for v in variants
            ]

        selected: Variant | None = None
        cumulative = 0.0
        for variant in variants:
            selected = variant
            cumulative += variant.split
            if variant_hash < cumulative:
                break

        if selected is None:
            return None
        return SelectedVariant(
            variant_key=selected.key,
            variant_value=selected.value,
            experiment_id=flag.experiment_id,
            is_experiment_active=flag.is_experiment_active,
        )

    @staticmethod
    def get_matching_variant(
        variant_key: str, flag: FlagDefinition, is_qa_tester: bool = False
    ) -> SelectedVariant | None:
        """キーを大文字小文字を区別せずに照合する。返すキーは定義側の表記。"""
        wanted = variant_key.casefold()
        for variant in flag.ruleset.variants:
            if variant.key.casefold() == wanted:
                return SelectedVariant(
                    variant_key=variant.key,
                    variant_value=variant.value,
                    experiment_id=flag.experiment_id,
                    is_experiment_active=flag.is_experiment_active,
                    is_qa_tester=True if is_qa_tester else None,
                )
        return None
