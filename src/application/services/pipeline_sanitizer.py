"""
application.services.pipeline_sanitizer - Access control for aggregations.

Rewrites an aggregation pipeline so that every collection it pulls in from
elsewhere ($lookup, $facet branches, $unionWith) is filtered by that
collection's access rule. The rule filter is prepended as a $match stage.

The rewrite is pure: the input pipeline is never mutated and rule filters
are deep-copied into the stages that use them.

Known limitation: $graphLookup is passed through unfiltered.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

SanitizationRules = Mapping[str, Mapping[str, Any]]
Stage = Mapping[str, Any]


class StageKind(str, Enum):
    JOIN = "$lookup"
    BRANCH = "$facet"
    UNION = "$unionWith"
    OTHER = "other"


_CLASSIFIED = (StageKind.JOIN, StageKind.BRANCH, StageKind.UNION)


def classify_stage(stage: Any) -> StageKind:
    if isinstance(stage, Mapping):
        for kind in _CLASSIFIED:
            if kind.value in stage:
                return kind
    return StageKind.OTHER


def sanitize_pipeline(
    pipeline: Sequence[Stage], rules: SanitizationRules,
) -> list[Stage]:
    """Return a new pipeline with rule filters injected. Order is preserved."""
    return [_sanitize_stage(stage, rules) for stage in pipeline]


class PipelineSanitizer:
    """Binds a rule table loaded once at startup."""

    def __init__(self, rules: Optional[SanitizationRules] = None):
        self._rules: SanitizationRules = rules or {}

    @property
    def enabled(self) -> bool:
        return bool(self._rules)

    @property
    def rules(self) -> SanitizationRules:
        return self._rules

    def sanitize(self, pipeline: Sequence[Stage]) -> list[Stage]:
        if not self._rules:
            return list(pipeline)
        return sanitize_pipeline(pipeline, self._rules)


# ---------------------------------------------------------------------------
# Stage rewriting
# ---------------------------------------------------------------------------

def _sanitize_stage(stage: Stage, rules: SanitizationRules) -> Stage:
    kind = classify_stage(stage)
    if kind is StageKind.JOIN:
        return _sanitize_join(stage, rules)
    if kind is StageKind.BRANCH:
        return _sanitize_branch(stage, rules)
    if kind is StageKind.UNION:
        return _sanitize_union(stage, rules)
    return stage


def _sanitize_join(stage: Stage, rules: SanitizationRules) -> Stage:
    lookup = stage["$lookup"]
    if not isinstance(lookup, Mapping):
        return stage

    lookup = dict(lookup)
    sub = _sub_pipeline(lookup, rules)
    if sub is not None:
        lookup["pipeline"] = sub

    rule = _rule_for(lookup.get("from"), rules)
    if rule is not None:
        lookup["pipeline"] = [_filter_stage(rule), *(sub or [])]
    return {**stage, "$lookup": lookup}


def _sanitize_branch(stage: Stage, rules: SanitizationRules) -> Stage:
    facet = stage["$facet"]
    if not isinstance(facet, Mapping):
        return stage

    branches = {
        name: sanitize_pipeline(sub, rules) if isinstance(sub, list) else sub
        for name, sub in facet.items()
    }
    return {**stage, "$facet": branches}


def _sanitize_union(stage: Stage, rules: SanitizationRules) -> Stage:
    union = stage["$unionWith"]

    if isinstance(union, str):
        rule = _rule_for(union, rules)
        if rule is None:
            return stage
        return {**stage, "$unionWith": {"coll": union, "pipeline": [_filter_stage(rule)]}}

    if not isinstance(union, Mapping):
        return stage

    union = dict(union)
    sub = _sub_pipeline(union, rules)
    if sub is not None:
        union["pipeline"] = sub

    rule = _rule_for(union.get("coll"), rules)
    if rule is not None:
        union["pipeline"] = [_filter_stage(rule), *(sub or [])]
    return {**stage, "$unionWith": union}


def _sub_pipeline(spec: Mapping[str, Any], rules: SanitizationRules) -> Optional[list[Stage]]:
    # A missing or non-list sub-pipeline counts as empty once a filter is added
    sub = spec.get("pipeline")
    if isinstance(sub, list):
        return sanitize_pipeline(sub, rules)
    return None


def _rule_for(collection: Any, rules: SanitizationRules) -> Optional[Mapping[str, Any]]:
    if not isinstance(collection, str):
        return None
    return rules.get(collection)


def _filter_stage(rule: Mapping[str, Any]) -> dict[str, Any]:
    return {"$match": copy.deepcopy(dict(rule))}
