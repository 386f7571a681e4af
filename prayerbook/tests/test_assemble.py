import pytest

from prayerbook.models import AUTHORS, Annotation, Prayer
from prayerbook.pipeline.assemble import assemble, group_by_author, merge_buckets, promote
from prayerbook.pipeline.filtering import sort_by_length, strip_kind
from prayerbook.pipeline.report import leaf_counts

BAHAULLAH, BAB, ABDULBAHA = AUTHORS

def P(text="x", author=BAHAULLAH, position=0):
    return Prayer(author=author, content=(text,), position=position)

def test_group_by_author_uses_canonical_order_then_first_seen():
    corpus = [
        P(author="Shoghi Effendi", position=0),
        P(author=ABDULBAHA, position=1),
        P(author="The Guardian", position=2),
        P(author=BAHAULLAH, position=3),
        P(author="Shoghi Effendi", position=4),
    ]
    out = group_by_author(corpus)
    assert list(out) == [BAHAULLAH, ABDULBAHA, "Shoghi Effendi", "The Guardian"]
    assert [p.position for p in out["Shoghi Effendi"]] == [0, 4]

def test_group_by_author_places_ascii_hyphen_tag_canonically():
    corpus = [P(author="Other", position=0), P(author="‘Abdu’l-Bahá", position=1)]
    assert list(group_by_author(corpus)) == [ABDULBAHA, "Other"]

def test_group_by_author_folds_hyphen_variants_into_one_group():
    corpus = [P(author="‘Abdu’l\u2011Bahá", position=0), P(author="‘Abdu’l-Bahá", position=1)]
    out = group_by_author(corpus)
    assert list(out) == [ABDULBAHA]
    assert [p.position for p in out[ABDULBAHA]] == [0, 1]

def test_leaf_counts_keeps_empty_split_visible():
    tree = {"A": [P()], "G": group_by_author([])}
    assert tree["G"] == {}
    assert leaf_counts(tree) == {"A": 1, "G": 0}

def test_assemble_nests_only_split_categories():
    a, b, c = P(position=0), P(position=1), P(position=2)
    level1 = {"Praise": [a, b], "Unity": [c]}
    tree = assemble(level1, {"Praise": {"X": [a], "Y": [b]}})
    assert tree == {"Praise": {"X": [a], "Y": [b]}, "Unity": [c]}
    assert leaf_counts(tree) == {"Praise/X": 1, "Praise/Y": 1, "Unity": 1}

def test_assemble_rejects_lossy_or_unknown_splits():
    a, b = P(position=0), P(position=1)
    with pytest.raises(ValueError):
        assemble({"Praise": [a, b]}, {"Praise": {"X": [a]}})
    with pytest.raises(ValueError):
        assemble({"Praise": [a]}, {"Unity": {"X": [a]}})

def test_promote_lifts_bucket_before_its_parent():
    h, c = P(position=0), P(position=1)
    tree = {"Praise": [], "Teaching": {"Humanity": [h], "Teaching: Collective": [c]}}
    out = promote(tree, "Teaching/Humanity")
    assert list(out) == ["Praise", "Humanity", "Teaching"]
    assert out["Teaching"] == {"Teaching: Collective": [c]}
    assert "Humanity" in tree["Teaching"]

def test_merge_resorts_by_corpus_position_and_drops_source():
    tree = {"Marriage": [P(position=1), P(position=5)], "Married": [P(position=3)], "Other": []}
    out = merge_buckets(tree, "Marriage", "Married")
    assert list(out) == ["Marriage", "Other"]
    assert [p.position for p in out["Marriage"]] == [1, 3, 5]
    assert "Married" in tree

def test_merge_only_takes_flat_buckets():
    tree = {"A": [P()], "B": {"C": [P()]}}
    with pytest.raises(ValueError):
        merge_buckets(tree, "A", "B")
    with pytest.raises(ValueError):
        merge_buckets(tree, "A", "A")

def test_strip_kind_touches_only_named_categories():
    noted = Prayer(author=BAB, content=(
        Annotation(kind="info", text="Recite at noon."), "O God!", Annotation(kind="call", text="He is God!"),
    ))
    tree = {"Fast": [noted], "Praise": [noted]}
    out = strip_kind(tree, ["Fast"])
    assert out["Fast"][0].content == ("O God!", Annotation(kind="call", text="He is God!"))
    assert out["Praise"][0] is noted
    assert len(noted.content) == 3

def test_strip_kind_reaches_nested_leaves():
    noted = Prayer(author=BAB, content=(Annotation(kind="info", text="Note."), "Text"))
    out = strip_kind({"A": {"B": [noted]}}, ["A"])
    assert out["A"]["B"][0].content == ("Text",)
    with pytest.raises(ValueError):
        strip_kind({"A": []}, ["Missing"])

def test_sort_by_length_is_ascending_and_stable():
    long_, short1, short2 = P("a" * 30, position=0), P("bb", position=1), P("cc", position=2)
    out = sort_by_length({"Obligatory": [long_, short1, short2]}, "Obligatory")
    assert [p.position for p in out["Obligatory"]] == [1, 2, 0]
