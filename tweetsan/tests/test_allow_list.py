from __future__ import annotations

from tweetsan.core.fields import AllowListTree, build_allow_list, render_allow_list


def test_paths_sharing_a_prefix_merge_into_one_node() -> None:
    tree = build_allow_list(["a.b", "a.c"])

    assert list(tree) == ["a"]
    sub = tree["a"]
    assert isinstance(sub, AllowListTree)
    assert set(sub) == {"b", "c"}
    assert sub.is_leaf("b") and sub.is_leaf("c")


def test_merge_is_recursive_below_the_first_level() -> None:
    tree = build_allow_list(["a.b.c", "a.b.d", "a.e"])

    assert tree.to_dict() == {"a": {"b": {"c": None, "d": None}, "e": None}}


def test_plain_segment_is_a_leaf() -> None:
    tree = build_allow_list(["id", "user.screen_name"])

    assert tree.is_leaf("id")
    assert tree["id"] is None
    assert not tree.is_leaf("user")
    assert tree["user"].is_leaf("screen_name")


def test_build_is_independent_of_input_order_and_repeats() -> None:
    paths = ["user.screen_name", "id", "entities.media", "user.id", "id"]

    t1 = build_allow_list(paths)
    t2 = build_allow_list(list(reversed(paths)))
    t3 = build_allow_list(paths + paths)

    assert t1 == t2 == t3
    assert hash(t1) == hash(t2)


def test_leaf_wins_over_branch_in_either_order() -> None:
    assert build_allow_list(["user", "user.screen_name"]).is_leaf("user")
    assert build_allow_list(["user.screen_name", "user"]).is_leaf("user")


def test_whitespace_is_trimmed() -> None:
    tree = build_allow_list(["  id ", "\tuser.screen_name\n"])

    assert tree.paths() == ["id", "user.screen_name"]


def test_malformed_paths_are_tolerated() -> None:
    tree = build_allow_list(["a.", ""])

    assert tree.to_dict() == {"": None, "a": {"": None}}


def test_paths_round_trip_sorted() -> None:
    tree = build_allow_list(["place", "entities.media", "entities.hashtags", "id"])

    assert tree.paths() == ["entities.hashtags", "entities.media", "id", "place"]


def test_render_outline() -> None:
    tree = build_allow_list(["id", "user.screen_name", "a.b.c"])

    assert render_allow_list(tree) == (
        "- a\n"
        "  - b\n"
        "    - c\n"
        "- id\n"
        "- user\n"
        "  - screen_name\n"
    )


def test_empty_tree() -> None:
    tree = build_allow_list([])

    assert len(tree) == 0
    assert tree.paths() == []
    assert render_allow_list(tree) == ""
