"""k1s0 flag_engine library."""

from .bucketing import normalized_hash
from .client import DefinitionsClient
from .config import LocalFlagsConfig
from .exceptions import DefinitionsFetchError, FlagEngineError, FlagEngineErrorCodes
from .exposure import ExposureReporter, Tracker
from .http_client import HttpDefinitionsClient
from .memory import InMemoryDefinitionsClient
from .models import (
    FlagContext,
    FlagDefinition,
    Rollout,
    RuleSet,
    SelectedVariant,
    Variant,
)
from .provider import LocalFlagsProvider
from .resolver import VariantResolver
from .rules import JsonLogicRuleEvaluator, RuleEvaluator
from .store import DefinitionStore

__all__ = [
    "DefinitionStore",
    "DefinitionsClient",
    "DefinitionsFetchError",
    "ExposureReporter",
    "FlagContext",
    "FlagDefinition",
    "FlagEngineError",
    "FlagEngineErrorCodes",
    "HttpDefinitionsClient",
    "InMemoryDefinitionsClient",
    "JsonLogicRuleEvaluator",
    "LocalFlagsConfig",
    "LocalFlagsProvider",
    "Rollout",
    "RuleEvaluator",
    "RuleSet",
    "SelectedVariant",
    "Tracker",
    "Variant",
    "VariantResolver",
    "normalized_hash",
]
