"""Tests for the aggregation pipeline sanitizer."""

import copy

from application.services.pipeline_sanitizer import (
    PipelineSanitizer,
    StageKind,
    classify_stage,
    sanitize_pipeline,
)

RULES = {"users": {"isActive": True}, "products": {"tenant": "t1"}}
USERS_FILTER = {"$match": {"isActive": True}}


def test_classify_stage():
    assert classify_stage({"$lookup": {}}) is StageKind.JOIN
    assert classify_stage({"$facet": {}}) is StageKind.BRANCH
    assert classify_stage({"$unionWith": "x"}) is StageKind.UNION
    assert classify_stage({"$match": {}}) is StageKind.OTHER


def test_lookup_without_pipeline_gets_filter():
    pipeline = [{"$lookup": {"from": "users", "localField": "user", "foreignField": "_id", "as": "u"}}]
    result = sanitize_pipeline(pipeline, RULES)
    assert result[0]["$lookup"]["pipeline"] == [USERS_FILTER]
    assert result[0]["$lookup"]["localField"] == "user"


def test_lookup_filter_is_prepended_to_existing_pipeline():
    pipeline = [{"$lookup": {"from": "users", "as": "u", "pipeline": [{"$project": {"name": 1}}]}}]
    result = sanitize_pipeline(pipeline, RULES)
    assert result[0]["$lookup"]["pipeline"] == [USERS_FILTER, {"$project": {"name": 1}}]


def test_nested_lookup_is_sanitized():
    pipeline = [{"$lookup": {
        "from": "orders",
        "as": "o",
        "pipeline": [{"$lookup": {"from": "users", "as": "u"}}],
    }}]
    result = sanitize_pipeline(pipeline, RULES)
    outer = result[0]["$lookup"]
    assert outer["pipeline"][0]["$lookup"]["pipeline"] == [USERS_FILTER]
    # orders has no rule, so no filter in front of the nested join
    assert len(outer["pipeline"]) == 1


def test_lookup_without_rule_keeps_its_shape():
    stage = {"$lookup": {"from": "orders", "localField": "a", "foreignField": "b", "as": "o"}}
    assert sanitize_pipeline([stage], RULES) == [stage]


def test_facet_branches_are_sanitized_independently():
    pipeline = [{"$facet": {
        "a": [{"$lookup": {"from": "users", "as": "u"}}],
        "b": [{"$count": "n"}],
    }}]
    result = sanitize_pipeline(pipeline, RULES)
    assert result[0]["$facet"]["a"][0]["$lookup"]["pipeline"] == [USERS_FILTER]
    assert result[0]["$facet"]["b"] == [{"$count": "n"}]


def test_bare_union_with_rule_becomes_object_form():
    result = sanitize_pipeline([{"$unionWith": "users"}], RULES)
    assert result == [{"$unionWith": {"coll": "users", "pipeline": [USERS_FILTER]}}]


def test_bare_union_without_rule_is_unchanged():
    assert sanitize_pipeline([{"$unionWith": "orders"}], RULES) == [{"$unionWith": "orders"}]


def test_union_object_form():
    with_pipeline = [{"$unionWith": {"coll": "users", "pipeline": [{"$limit": 5}]}}]
    result = sanitize_pipeline(with_pipeline, RULES)
    assert result[0]["$unionWith"]["pipeline"] == [USERS_FILTER, {"$limit": 5}]

    without_pipeline = [{"$unionWith": {"coll": "users"}}]
    result = sanitize_pipeline(without_pipeline, RULES)
    assert result[0]["$unionWith"] == {"coll": "users", "pipeline": [USERS_FILTER]}


def test_union_pipeline_joins_are_sanitized():
    pipeline = [{"$unionWith": {"coll": "orders", "pipeline": [{"$lookup": {"from": "products", "as": "p"}}]}}]
    result = sanitize_pipeline(pipeline, RULES)
    inner = result[0]["$unionWith"]["pipeline"][0]["$lookup"]
    assert inner["pipeline"] == [{"$match": {"tenant": "t1"}}]


def test_other_stages_pass_through_in_order():
    pipeline = [
        {"$match": {"status": "delivered"}},
        {"$lookup": {"from": "users", "as": "u"}},
        {"$group": {"_id": "$status", "n": {"$sum": 1}}},
        {"$graphLookup": {"from": "users", "startWith": "$x", "connectFromField": "a",
                          "connectToField": "b", "as": "g"}},
    ]
    result = sanitize_pipeline(pipeline, RULES)
    assert len(result) == 4
    assert result[0] == pipeline[0]
    assert result[2] == pipeline[2]
    assert result[3] == pipeline[3]


def test_input_is_not_mutated():
    pipeline = [
        {"$lookup": {"from": "users", "as": "u", "pipeline": [{"$limit": 1}]}},
        {"$facet": {"x": [{"$unionWith": "users"}]}},
        {"$unionWith": {"coll": "products"}},
    ]
    snapshot = copy.deepcopy(pipeline)
    sanitize_pipeline(pipeline, RULES)
    assert pipeline == snapshot


def test_rule_filters_are_copied_not_shared():
    rules = {"users": {"isActive": True}}
    result = sanitize_pipeline([{"$unionWith": "users"}], rules)
    result[0]["$unionWith"]["pipeline"][0]["$match"]["isActive"] = False
    assert rules == {"users": {"isActive": True}}


def test_rule_lookup_is_exact():
    result = sanitize_pipeline([{"$unionWith": "Users"}], RULES)
    assert result == [{"$unionWith": "Users"}]


def test_empty_rules_are_a_no_op():
    pipeline = [{"$lookup": {"from": "users", "as": "u"}}, {"$unionWith": "users"}]
    assert sanitize_pipeline(pipeline, {}) == pipeline
    sanitizer = PipelineSanitizer({})
    assert not sanitizer.enabled
    assert sanitizer.sanitize(pipeline) == pipeline


def test_facet_branches_get_only_their_own_filter():
    pipeline = [{"$facet": {
        "buyers": [{"$lookup": {"from": "users", "as": "u"}}],
        "catalog": [{"$lookup": {"from": "products", "as": "p"}}],
    }}]
    result = sanitize_pipeline(pipeline, RULES)[0]["$facet"]
    assert result["buyers"][0]["$lookup"]["pipeline"] == [USERS_FILTER]
    assert result["catalog"][0]["$lookup"]["pipeline"] == [{"$match": {"tenant": "t1"}}]


def test_null_sub_pipeline_is_treated_as_empty():
    lookup = [{"$lookup": {"from": "users", "as": "u", "pipeline": None}}]
    assert sanitize_pipeline(lookup, RULES)[0]["$lookup"]["pipeline"] == [USERS_FILTER]

    union = [{"$unionWith": {"coll": "users", "pipeline": None}}]
    assert sanitize_pipeline(union, RULES)[0]["$unionWith"]["pipeline"] == [USERS_FILTER]


def test_null_sub_pipeline_without_rule_is_left_alone():
    stage = {"$lookup": {"from": "orders", "as": "o", "pipeline": None}}
    assert sanitize_pipeline([stage], RULES) == [stage]
