"""Tests for the level tree parsing and terminal level search."""

import json
import uuid

import pytest

from qedi_console.errors import MalformedInputError, NotFoundError
from qedi_console.levels import LevelNode, find_leaves, first_leaf, parse_levels


def _uid(n):
    return uuid.UUID(int=n)


def _node(n, name, children=None):
    return LevelNode(id=_uid(n), name=name, children=children)


class TestFindLeaves:
    """Tests for find_leaves()."""

    def test_empty_input(self):
        """No nodes gives no leaves."""
        assert find_leaves([]) == []
        assert find_leaves(None) == []

    def test_single_level_of_children(self):
        """Children without grandchildren are returned left to right."""
        children = [_node(2, "A1", []), _node(3, "A2", []), _node(4, "A3")]
        tree = [_node(1, "A", children)]

        assert find_leaves(tree) == children

    def test_documented_example(self):
        """Node 3 has children and node 1 is top-level, so only 2 and 4 are leaves."""
        tree = [
            _node(1, "A", [
                _node(2, "A1", []),
                _node(3, "A2", [_node(4, "A2a", [])]),
            ])
        ]

        assert [leaf.id for leaf in find_leaves(tree)] == [_uid(2), _uid(4)]

    def test_deep_tree_preorder(self):
        """Leaves across all depths come back in pre-order."""
        tree = [
            _node(1, "A", [
                _node(2, "B", [
                    _node(3, "C", [
                        _node(4, "D", [_node(5, "E1"), _node(6, "E2")]),
                    ]),
                    _node(7, "C-leaf"),
                ]),
            ]),
            _node(8, "A2", [_node(9, "B-leaf", [])]),
        ]

        assert [leaf.name for leaf in find_leaves(tree)] == ["E1", "E2", "C-leaf", "B-leaf"]

    def test_top_level_childless_node_excluded(self):
        """A childless top-level node is never reported as a leaf."""
        tree = [_node(1, "lonely"), _node(2, "parent", [_node(3, "child")]), _node(4, "empty", [])]

        assert [leaf.name for leaf in find_leaves(tree)] == ["child"]

    def test_absent_and_empty_children_are_equivalent(self):
        """children=None and children=[] both mark a leaf."""
        tree = [_node(1, "A", [_node(2, "none"), _node(3, "empty", [])])]

        assert [leaf.name for leaf in find_leaves(tree)] == ["none", "empty"]

    def test_input_not_mutated(self):
        """The walk only reads its input."""
        tree = [_node(1, "A", [_node(2, "A1", [])])]
        before = [node.model_dump() for node in tree]

        find_leaves(tree)

        assert [node.model_dump() for node in tree] == before

    def test_returns_fresh_list(self):
        """Each call builds a new result list."""
        tree = [_node(1, "A", [_node(2, "A1")])]

        first = find_leaves(tree)
        second = find_leaves(tree)

        assert first == second
        assert first is not second

    def test_very_deep_tree(self):
        """Deep chains do not hit the recursion limit."""
        node = _node(0, "bottom")
        for i in range(1, 5000):
            node = _node(i, f"level-{i}", [node])

        leaves = find_leaves([node])

        assert [leaf.name for leaf in leaves] == ["bottom"]


class TestFirstLeaf:
    """Tests for first_leaf()."""

    def test_first_in_order(self):
        tree = [_node(1, "A", [_node(2, "first"), _node(3, "second")])]

        assert first_leaf(tree).name == "first"

    def test_no_leaves_raises(self):
        """Only top-level nodes means there is nothing to select."""
        with pytest.raises(NotFoundError):
            first_leaf([_node(1, "A")])


class TestParseLevels:
    """Tests for parse_levels()."""

    def test_parse_json_text(self):
        """camelCase API payloads are parsed into nested nodes."""
        payload = json.dumps([
            {
                "id": str(_uid(1)),
                "name": "Level A",
                "children": [{"id": str(_uid(2)), "name": "Level E", "children": []}],
            }
        ])

        levels = parse_levels(payload)

        assert levels[0].name == "Level A"
        assert levels[0].children[0].id == _uid(2)
        assert levels[0].children[0].is_leaf

    def test_parse_pascal_case(self):
        """PascalCase keys are accepted as well."""
        levels = parse_levels([{"Id": str(_uid(5)), "Name": "Site", "Children": None}])

        assert levels[0].id == _uid(5)
        assert levels[0].children is None

    def test_invalid_json(self):
        with pytest.raises(MalformedInputError):
            parse_levels("not json")

    def test_wrong_shape(self):
        """An id that is not a UUID is a shape mismatch."""
        with pytest.raises(MalformedInputError):
            parse_levels([{"id": "not-a-guid", "name": "A"}])

    def test_not_an_array(self):
        with pytest.raises(MalformedInputError):
            parse_levels('{"id": "x"}')

    def test_nodes_are_frozen(self):
        level = parse_levels([{"id": str(_uid(1)), "name": "A"}])[0]

        with pytest.raises(Exception):
            level.name = "B"
