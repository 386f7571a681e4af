# prayerbook/main.py
from __future__ import annotations

import sys
import traceback

from prayerbook.config import cfg
from prayerbook.pipeline.export import export_json, load_corpus
from prayerbook.pipeline.plan import load_plan_file, run_plan
from prayerbook.pipeline.report import debug_stats, log
from prayerbook.pipeline.rules import rule_summary
from prayerbook.render import write_html

def build() -> None:
    corpus = load_corpus(cfg.PRAYERS_JSON_PATH)
    log("RUN", f"prayers: {len(corpus)} from {cfg.PRAYERS_JSON_PATH}")

    plan = load_plan_file(cfg.RULES_PATH)
    for rs in plan.passes:
        log("RUN", f"pass {rs.name}: {len(rule_summary(rs))} categories")

    tree = run_plan(corpus, plan)
    debug_stats(tree)

    export_json(tree, cfg.OUTPUT_JSON_PATH)
    log("DONE", f"tree -> {cfg.OUTPUT_JSON_PATH}")
    write_html(tree, cfg.OUTPUT_HTML_PATH, plan.authors)
    log("DONE", f"page -> {cfg.OUTPUT_HTML_PATH}")

def main() -> None:
    print(f"[BOOT] python: {sys.version.split()[0]}")
    try:
        build()
    except Exception as e:
        log("ERR", f"unhandled: {e}")
        traceback.print_exc()
        raise

if __name__ == "__main__":
    main()
