import pytest

from conftest import make_sentence
from trial_graph_builder.app.core.errors import AnnotationError
from trial_graph_builder.app.models.annotation import AnnotatedSentence, DependencyEdge, ParseTree, WordRef
from trial_graph_builder.app.models.graph import BASE_LABEL
from trial_graph_builder.app.services.emitter import GraphEmitter
from trial_graph_builder.app.services.identifiers import IdentifierAllocator


@pytest.fixture
def emitter(sink):
    return GraphEmitter(sink, IdentifierAllocator(), "NCT00000001")


def count_nodes(tree: ParseTree) -> int:
    return 1 + sum(count_nodes(c) for c in tree.children)


def test_tree_emits_one_edge_per_non_root_node(emitter, sink):
    sentence = make_sentence("age over 18")
    emitter.build_tree(sentence.parse_tree, sentence.tokens, "Inclusion Criteria", 0)

    n = count_nodes(sentence.parse_tree)
    assert n == 8
    assert len(sink.nodes) == n
    assert len(sink.edges) == n - 1
    assert len(sink.edges_of("RootEdge")) == 1
    assert len(sink.edges_of("ParseEdge")) == n - 2
    assert emitter.summary.nodes_upserted == n
    assert emitter.summary.edges_upserted == n - 1


def test_tree_root_carries_provenance(emitter, sink):
    sentence = make_sentence("age over 18")
    root_uid = emitter.build_tree(sentence.parse_tree, sentence.tokens, "Inclusion Criteria", 3)

    root = sink.node(root_uid)
    assert root.labels == frozenset({BASE_LABEL, "ParseNode", "ROOT"})
    assert root.properties == {
        "start_offset": 0,
        "end_offset": 10,
        "section": "Inclusion Criteria",
        "sentence_index": 3,
        "document_id": "NCT00000001",
    }
    (root_edge,) = sink.edges_of("RootEdge")
    assert root_edge.from_uid == root_uid
    assert "ParseNode" in sink.node(root_edge.to_uid).labels


def test_tree_nodes_are_pre_order_with_inclusive_offsets(emitter, sink):
    sentence = make_sentence("age over 18")
    emitter.build_tree(sentence.parse_tree, sentence.tokens, "s", 0)

    labels = [sorted(n.labels - {BASE_LABEL}) for n in sink.nodes]
    assert labels == [
        ["ParseNode", "ROOT"], ["ParseNode", "S"],
        ["ParseNode", "X"], ["TextNode"],
        ["ParseNode", "X"], ["TextNode"],
        ["ParseNode", "X"], ["TextNode"],
    ]
    leaves = [n for n in sink.nodes if "TextNode" in n.labels]
    assert [(l.properties["text"], l.properties["start_offset"], l.properties["end_offset"]) for l in leaves] == [
        ("age", 0, 2), ("over", 4, 7), ("18", 9, 10),
    ]
    s_node = sink.nodes[1]
    assert (s_node.properties["start_offset"], s_node.properties["end_offset"]) == (0, 10)

    # every edge points from an earlier (parent) node to a later one
    assert all(e.from_uid < e.to_uid for e in sink.edges)


def test_dependency_edges_point_from_dependent_to_governor(emitter, sink):
    sentence = make_sentence("age over 18")
    uids = emitter.build_dependency(sentence.dependencies, "s", 0)

    dep_edges = sink.edges_of("dep")
    assert [(e.from_uid, e.to_uid) for e in dep_edges] == [(uids[2], uids[1]), (uids[3], uids[1])]


def test_dependency_reuses_uid_of_repeated_token(emitter, sink):
    want = WordRef(3, "want")
    edges = [
        DependencyEdge(source=want, target=WordRef(1, "patients"), relation="nsubj"),
        DependencyEdge(source=WordRef(5, "trial"), target=want, relation="acl"),
        DependencyEdge(source=want, target=WordRef(4, "join"), relation="xcomp"),
    ]
    uids = emitter.build_dependency(edges, "s", 0)

    uids_for_3 = {n.uid for n in sink.nodes if n.properties.get("idx") == 3}
    assert uids_for_3 == {uids[3]}
    assert len(set(uids.values())) == len(uids) == 4


def test_dependency_closes_with_root_word(emitter, sink):
    sentence = make_sentence("age over 18")
    assert len(sentence.dependencies) == 2
    uids = emitter.build_dependency(sentence.dependencies, "Exclusion Criteria", 1)

    roots = [n for n in sink.nodes if n.properties.get("word") == "ROOT"]
    assert len(roots) == 1
    root = roots[0]
    assert root.properties == {
        "word": "ROOT",
        "idx": 0,
        "document_id": "NCT00000001",
        "section": "Exclusion Criteria",
        "sentence_index": 1,
    }
    (root_edge,) = sink.edges_of("root")
    assert root_edge.to_uid == root.uid
    assert root_edge.from_uid == uids[sentence.dependencies[-1].source.index]


def test_dependency_without_edges_emits_nothing(emitter, sink):
    assert emitter.build_dependency([], "s", 0) == {}
    assert sink.nodes == []
    assert sink.edges == []


def test_uids_never_collide_across_sentences(sink):
    allocator = IdentifierAllocator()
    first = GraphEmitter(sink, allocator, "NCT1")
    second = GraphEmitter(sink, allocator, "NCT2")
    first.emit(make_sentence("age over 18"), "a", 0)
    second.emit(make_sentence("no prior therapy"), "b", 0)

    uids = [n.uid for n in sink.nodes]
    # word nodes are upserted once per edge they take part in
    assert len(set(uids)) == len({(n.uid, frozenset(n.properties.items())) for n in sink.nodes})
    assert sorted(set(uids)) == list(range(len(set(uids))))


def test_missing_parse_tree_is_fatal(emitter):
    sentence = AnnotatedSentence(parse_tree=None, dependencies=[], tokens=[])
    with pytest.raises(AnnotationError):
        emitter.emit(sentence, "s", 0)


def test_missing_token_offsets_is_fatal(emitter, sink):
    sentence = make_sentence("age over 18")
    with pytest.raises(AnnotationError):
        emitter.build_tree(sentence.parse_tree, sentence.tokens[:1], "s", 0)
