"""Tests for comment ingestion, classification and parent resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dotdox.config import DotdoxConfig
from dotdox.diagnostics import MALFORMED_COMMENT, UNKNOWN_TAG, UNRECOGNIZED_COMMENT, DiagnosticSink
from dotdox.errors import CommentError
from dotdox.index import DocIndex
from dotdox.resolver import STALLED, WAITING

from tests._fixtures.comments import comment, entity, tag


def _ingest(index: DocIndex, *records) -> DocIndex:
    index.add_comments(records)
    index.process()
    return index


def test_ignored_comments_are_not_stored(index: DocIndex) -> None:
    _ingest(
        index,
        entity("class", "Hidden", extra=[tag("ignore")]),
        entity("function", "hidden", extra=[tag("ignore")]),
        comment(tag("ignore"), tag("name", "misc")),
    )

    assert index.classes == {}
    assert index.functions == {}
    assert index.modules == {}
    assert index.constants == {}
    assert index.misc == []


def test_first_definition_wins_per_category(index: DocIndex) -> None:
    _ingest(
        index,
        entity("class", "Foo", description="first"),
        entity("class", "Foo", description="second"),
        entity("function", "f", description="first"),
        entity("function", "f", description="second"),
        entity("constant", "C", description="first"),
        entity("enum", "C", description="second"),
    )

    assert index.classes["Foo"].description == "first"
    assert index.functions["f"].description == "first"
    assert index.constants["C"].description == "first"
    assert len(index.diagnostics) == 0


def test_same_name_in_different_categories_is_kept(index: DocIndex) -> None:
    _ingest(index, entity("class", "Foo"), entity("module", "Foo"), entity("function", "Foo"))

    assert "Foo" in index.classes
    assert "Foo" in index.modules
    assert "Foo" in index.functions


def test_classification_routes_kinds(index: DocIndex) -> None:
    _ingest(
        index,
        entity("module", "util"),
        comment(tag("kind", "enum"), tag("name", "Color")),
        comment(tag("name", "loose")),
    )

    assert list(index.modules) == ["util"]
    assert list(index.constants) == ["Color"]
    assert [item.name for item in index.misc] == ["loose"]


def test_parent_before_child_attaches_once(index: DocIndex) -> None:
    _ingest(index, entity("class", "P"), entity("function", "c", member_of="P"))

    parent = index.classes["P"]
    child = index.functions["c"]
    assert parent.children == [child]
    assert child.parent is parent
    assert index.pending_resolutions == 0


def test_child_before_parent_attaches_when_parent_arrives(index: DocIndex) -> None:
    index.add_comments([entity("function", "f", member_of="Foo")])
    index.process()

    child = index.functions["f"]
    assert child.parent is None
    assert index.pending_resolutions == 1
    assert index.unresolved()[0].state == WAITING

    _ingest(index, entity("class", "Foo"))

    assert index.classes["Foo"].get_first_child("f") is child
    assert child.parent is index.classes["Foo"]
    assert index.pending_resolutions == 0


def test_forward_reference_example_keeps_top_level_record(index: DocIndex) -> None:
    _ingest(index, entity("function", "f", member_of="Foo"), entity("class", "Foo"))

    attached = index.classes["Foo"].get_first_child("f")
    assert attached is not None
    assert attached is index.functions["f"]


def test_modules_are_resolution_targets(index: DocIndex) -> None:
    _ingest(index, entity("constant", "VERSION", member_of="util"), entity("module", "util"))

    assert index.modules["util"].get_first_child("VERSION") is index.constants["VERSION"]


def test_dotted_reference_uses_earliest_child(index: DocIndex) -> None:
    _ingest(
        index,
        entity("class", "A"),
        entity("class", "B", member_of="A", description="first"),
        entity("function", "B", member_of="A", description="second"),
        entity("function", "deep", member_of="A.B"),
    )

    first_b = index.classes["B"]
    assert [child.description for child in index.classes["A"].get_children("B")] == ["first", "second"]
    assert first_b.get_first_child("deep") is index.functions["deep"]
    assert index.functions["deep"].parent is first_b


def test_missing_intermediate_segment_never_resolves(index: DocIndex) -> None:
    _ingest(index, entity("class", "Outer"), entity("function", "deep", member_of="Outer.Inner"))

    dependent = index.functions["deep"]
    assert dependent.parent is None
    assert index.pending_resolutions == 1
    pending = index.unresolved()[0]
    assert pending.reference == "Outer.Inner"
    assert pending.state == STALLED
    assert pending.waiting_for == "Outer.Inner"

    # A later Inner does not revive the stalled walk.
    _ingest(index, entity("class", "Inner", member_of="Outer"))
    assert dependent.parent is None
    assert index.pending_resolutions == 1


def test_multi_segment_forward_reference_stalls_when_head_arrives_first(index: DocIndex) -> None:
    _ingest(
        index,
        entity("function", "deep", member_of="A.B"),
        entity("class", "A"),
        entity("class", "B", member_of="A"),
    )

    assert index.functions["deep"].parent is None
    assert index.classes["B"].parent is index.classes["A"]
    assert [item.state for item in index.unresolved()] == [STALLED]


def test_never_declared_parent_stays_pending(index: DocIndex) -> None:
    _ingest(index, entity("function", "orphan", member_of="Ghost"))

    assert index.functions["orphan"].parent is None
    assert index.pending_resolutions == 1
    assert index.bus.pending_topics() == ["resolve:Ghost"]


def test_nested_class_publishes_qualified_name(index: DocIndex) -> None:
    published = []
    index.bus.subscribe("resolve:Outer.Inner", published.append)

    _ingest(index, entity("class", "Outer"), entity("class", "Inner", member_of="Outer"))

    assert published == [index.classes["Inner"]]


def test_duplicate_class_does_not_republish(index: DocIndex) -> None:
    published = []
    index.bus.subscribe("resolve:Foo", published.append)

    _ingest(index, entity("class", "Foo", description="a"), entity("class", "Foo", description="b"))

    assert [item.description for item in published] == ["a"]


def test_misc_diagnostic_only_when_verbose(tmp_path: Path) -> None:
    quiet_sink = DiagnosticSink()
    quiet = DocIndex(DotdoxConfig(root=tmp_path), diagnostics=quiet_sink)
    _ingest(quiet, comment(tag("name", "loose")))
    assert quiet_sink.by_code(UNRECOGNIZED_COMMENT) == []

    loud_sink = DiagnosticSink()
    loud = DocIndex(DotdoxConfig(root=tmp_path, verbose=True), diagnostics=loud_sink)
    _ingest(loud, comment(tag("name", "loose")))
    assert len(loud_sink.by_code(UNRECOGNIZED_COMMENT)) == 1
    assert [item.name for item in loud.misc] == ["loose"]


def test_malformed_comment_does_not_abort_ingestion(index: DocIndex, sink: DiagnosticSink) -> None:
    _ingest(
        index,
        "not even a mapping",
        {"tags": "class"},
        entity("class", "Survivor"),
    )

    assert list(index.classes) == ["Survivor"]
    assert len(sink.by_code(MALFORMED_COMMENT)) == 2


def test_bad_tag_keeps_rest_of_comment(index: DocIndex, sink: DiagnosticSink) -> None:
    _ingest(
        index,
        entity("class", "Parent"),
        comment(tag("class"), tag("name", "Foo"), {"string": "stray"}, "junk", tag("memberOf", parent="Parent")),
    )

    assert "Foo" in index.classes
    assert index.classes["Foo"].parent is index.classes["Parent"]
    assert sink.by_code(MALFORMED_COMMENT) == []
    assert len(sink.by_code(UNKNOWN_TAG)) == 2


def test_process_only_ingests_new_comments(index: DocIndex) -> None:
    _ingest(index, entity("class", "Foo"))
    first = index.classes["Foo"]
    _ingest(index, entity("function", "bar", member_of="Foo"))

    assert index.classes["Foo"] is first
    assert first.children == [index.functions["bar"]]


def test_get_class_resolves_for_external_callers(index: DocIndex) -> None:
    _ingest(index, entity("module", "util"), entity("class", "Helper", member_of="util"))

    deferred = index.get_class("util.Helper")

    assert deferred.done
    assert deferred.result is index.classes["Helper"]


def test_load_comments_reads_json_array(tmp_path: Path, index: DocIndex) -> None:
    source = tmp_path / "comments.json"
    source.write_text(json.dumps([entity("class", "Foo"), entity("function", "f", member_of="Foo")]), encoding="utf-8")

    assert index.load_comments(source) == 2
    index.process()

    assert index.classes["Foo"].get_first_child("f") is index.functions["f"]


def test_load_comments_rejects_bad_payloads(tmp_path: Path, index: DocIndex) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(CommentError):
        index.load_comments(broken)

    wrong_shape = tmp_path / "object.json"
    wrong_shape.write_text(json.dumps({"tags": []}), encoding="utf-8")
    with pytest.raises(CommentError):
        index.load_comments(wrong_shape)


def test_load_comments_wraps_read_failures(tmp_path: Path, index: DocIndex) -> None:
    undecodable = tmp_path / "latin1.json"
    undecodable.write_bytes(b'["caf\xe9"]')
    with pytest.raises(CommentError):
        index.load_comments(undecodable)

    with pytest.raises(CommentError):
        index.load_comments(tmp_path)
