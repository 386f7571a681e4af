from pathlib import Path

import pytest
import yaml

from prayerbook.models import AUTHORS, parse_corpus
from prayerbook.pipeline.export import dump_tree
from prayerbook.pipeline.plan import AUTHOR_SPLIT, load_plan, load_plan_file, run_plan
from prayerbook.pipeline.report import leaf_counts
from prayerbook.pipeline.rules import RuleSetError
from prayerbook.render import render_document

BAHAULLAH, BAB, ABDULBAHA = AUTHORS
RULES_YML = Path(__file__).resolve().parents[1] / "rules.yml"

RECORDS = [
    {"prayer": BAHAULLAH, "content": [
        "Whoso wisheth to pray, let him wash his hands, and while he washeth, let him say: "
        "Strengthen my hand, O my God, that it may take hold of Thy Book."]},
    {"prayer": BAHAULLAH, "content": ["I bear witness, O my God, that Thou hast created me to know Thee."]},
    {"prayer": BAB, "content": ["Praised be Thou, O Lord my God!"]},
    {"prayer": ABDULBAHA, "content": ["O God, unite all the peoples."]},
    {"prayer": ABDULBAHA, "content": ["O God, assist us to teach Thy Cause."]},
    {"prayer": ABDULBAHA, "content": [{"text": "O Lord, open the eyes of the peoples and enable me to teach them.",
                                       "lines": [3, 4]}]},
    {"prayer": ABDULBAHA, "content": ["Grant a child to my husband and me."]},
    {"prayer": ABDULBAHA, "content": ["Bless this marriage, O God."]},
    {"prayer": BAB, "content": [{"type": "info", "text": "To be recited during the Fast."},
                                "O God, accept our fasting."]},
]

@pytest.fixture
def tree():
    return run_plan(parse_corpus(RECORDS), load_plan_file(RULES_YML))

def positions(items):
    return [p.position for p in items]

def test_packaged_plan_loads():
    plan = load_plan_file(RULES_YML)
    assert [rs.name for rs in plan.passes] == ["occasions", "themes"]
    assert plan.passes[0].long_text_threshold == 11000
    assert plan.passes[1].fallback == "Glory and Devotion"
    assert plan.splits["Glory and Devotion"] == AUTHOR_SPLIT
    assert plan.authors == AUTHORS

def test_packaged_plan_places_every_prayer_once(tree):
    assert sum(leaf_counts(tree).values()) == len(RECORDS)
    assert "Uncategorized" not in tree

def test_packaged_plan_assignments(tree):
    assert positions(tree["Unity"]) == [3]
    assert positions(tree["Humanity"]) == [5]
    assert tree["Teaching"] == {"Teaching: Collective": tree["Teaching"]["Teaching: Collective"],
                                "Teaching: Individual": []}
    assert positions(tree["Teaching"]["Teaching: Collective"]) == [4]
    assert {a: positions(ps) for a, ps in tree["Glory and Devotion"].items()} == {BAB: [2]}
    assert tree["Blessing"] == {"Nearness: Collective": [], "Nearness: Individual": []}

def test_packaged_plan_transformations(tree):
    keys = list(tree)
    assert keys[:2] == ["Particular", "Obligatory"]
    assert keys.index("Humanity") == keys.index("Teaching") - 1
    assert "Married" not in tree
    assert positions(tree["Marriage"]) == [6, 7]
    assert positions(tree["Obligatory"]) == [1, 0]
    assert tree["Fast"][0].content == ("O God, accept our fasting.",)

def test_leftovers_are_kept_and_reported(capsys):
    plan = load_plan(yaml.safe_load("""
passes:
  - name: only
    categories:
      Unity: [unite]
"""))
    tree = run_plan(parse_corpus(RECORDS[2:4]), plan)
    assert positions(tree["Unity"]) == [1]
    assert positions(tree["Uncategorized"]) == [0]
    out = capsys.readouterr().out
    assert "[PASS] only: 1 categorised, 1 left" in out
    assert "[WARN] 1 prayers matched no category" in out

def test_cascade_feeds_the_remainder_to_the_next_pass():
    plan = load_plan({"passes": [
        {"categories": {"Unity": ["unite"]}},
        {"categories": {"Praise": ["praised"], "Rest": {"catch_all": True}}},
    ]})
    tree = run_plan(parse_corpus(RECORDS[1:4]), plan)
    assert list(tree) == ["Unity", "Praise", "Rest"]
    assert [positions(tree[k]) for k in tree] == [[2], [1], [0]]

def test_empty_author_split_stays_in_leaf_counts():
    plan = load_plan({"passes": [{"categories": {"A": ["unite"], "G": {"catch_all": True}}}],
                      "splits": {"G": "author"}})
    tree = run_plan(parse_corpus(RECORDS[3:4]), plan)
    assert tree["G"] == {}
    assert leaf_counts(tree) == {"A": 1, "G": 0}

def test_promoted_label_is_a_known_path():
    plan = load_plan({
        "passes": [{"categories": {"A": ["x"]}}],
        "splits": {"A": {"categories": {"B": ["y"], "C": {"catch_all": True}}}},
        "promote": ["A/B"],
        "sort_by_length": ["B"],
    })
    assert plan.promote == ("A/B",)
    assert plan.sort_by_length == ("B",)

def test_pipeline_is_idempotent():
    plan = load_plan_file(RULES_YML)
    first = run_plan(parse_corpus(RECORDS), plan)
    second = run_plan(parse_corpus(RECORDS), load_plan_file(RULES_YML))
    assert dump_tree(first) == dump_tree(second)
    assert render_document(first) == render_document(second)

@pytest.mark.parametrize("raw", [
    {},
    {"passes": [{"categories": {"Uncategorized": ["x"]}}]},
    {"passes": [{"categories": {"A": ["x"]}}, {"categories": {"A": ["y"]}}]},
    {"passes": [{"categories": {"A": ["x"]}}], "splits": {"B": "author"}},
    {"passes": [{"categories": {"A": ["x"]}}], "splits": {"A": {"categories": {"B": ["y"]}}}},
    {"passes": [{"categories": {"A": ["x"]}}], "merge": [{"into": "A"}]},
    {"passes": [{"categories": {"A": ["x"]}}], "sort_by_length": "A"},
    {"passes": [{"categories": {"A": ["x"]}}], "splits": [{"A": "author"}]},
    {"passes": [{"categories": {"A": ["x"]}}], "sort_by_length": ["Nope"]},
    {"passes": [{"categories": {"A": ["x"]}}], "strip": {"info": ["Nope"]}},
    {"passes": [{"categories": {"A": ["x"], "B": ["y"]}}], "merge": [{"into": "A", "from": "Nope"}]},
    {"passes": [{"categories": {"A": ["x"]}}], "promote": ["A"]},
    {"passes": [{"categories": {"A": ["x"]}}],
     "splits": {"A": {"categories": {"B": ["y"], "C": {"catch_all": True}}}},
     "promote": ["A/Nope"]},
])
def test_bad_plans_fail_at_load(raw):
    with pytest.raises(RuleSetError):
        load_plan(raw)
