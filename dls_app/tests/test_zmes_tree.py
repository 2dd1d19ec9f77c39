import sys
from types import SimpleNamespace

import numpy as np
import pytest

from dls_app.io.zmes_tree import (
    ZmesParameter,
    coerce_zmes_file,
    find_parameter,
    find_parameter_deep,
    iter_parameters,
)
from dls_app.tests.zmes_test_utils import node


def _tree():
    return node(
        "root",
        None,
        node("a", 1, node("target", "under a"), node("b", 2)),
        node("target", "direct child"),
        node("c", None, node("d", None, node("target", "deep"))),
    )


def test_find_parameter_only_inspects_given_siblings():
    tree = _tree()

    assert find_parameter(tree.children, "target").value == "direct child"
    assert find_parameter(tree.children, "d") is None
    assert find_parameter([], "target") is None


def test_find_parameter_returns_first_duplicate():
    siblings = [node("x", 1), node("x", 2)]

    assert find_parameter(siblings, "x").value == 1


def test_find_parameter_deep_prefers_document_order():
    tree = _tree()

    assert find_parameter_deep(tree, "target").value == "under a"
    assert find_parameter_deep(tree.children[2], "target").value == "deep"


def test_find_parameter_deep_checks_root_first():
    tree = node("target", "root", node("target", "child"))

    assert find_parameter_deep(tree, "target").value == "root"


def test_find_parameter_deep_missing_returns_none():
    assert find_parameter_deep(_tree(), "nope") is None


def test_iter_parameters_is_preorder():
    names = [p.name for p in iter_parameters(_tree())]

    assert names == ["root", "a", "target", "b", "target", "c", "d", "target"]


def test_coerce_zmes_file_accepts_mappings_and_objects():
    sizes = np.array([1.0, 2.0])
    parsed = {
        "records": [
            {
                "guid": "g-1",
                "parameters": {
                    "name": "Record",
                    "children": [
                        {"name": "Sizes", "value": sizes},
                        SimpleNamespace(name="Operator Name", value="op", children=None),
                    ],
                },
            }
        ]
    }

    zmes_file = coerce_zmes_file(parsed)

    record = zmes_file.records[0]
    assert record.guid == "g-1"
    assert isinstance(record.parameters, ZmesParameter)
    assert record.parameters.value is None
    assert record.parameters.children[0].value is sizes
    assert record.parameters.children[1].children == ()


def test_coerce_zmes_file_rejects_malformed_output():
    with pytest.raises(ValueError):
        coerce_zmes_file({"no_records": []})
    with pytest.raises(ValueError):
        coerce_zmes_file({"records": [{"guid": "g", "parameters": {"value": 1}}]})
    with pytest.raises(ValueError):
        coerce_zmes_file({"records": [{"guid": "g"}]})


def test_coerce_zmes_file_handles_trees_deeper_than_recursion_limit():
    depth = sys.getrecursionlimit() + 500
    leaf = {"name": "Sizes", "value": np.array([1.0])}
    tree = leaf
    for level in range(depth):
        tree = {"name": f"level {level}", "children": [tree]}

    zmes_file = coerce_zmes_file({"records": [{"guid": "deep", "parameters": tree}]})

    found = find_parameter_deep(zmes_file.records[0].parameters, "Sizes")
    assert found is not None
    assert found.value is leaf["value"]
