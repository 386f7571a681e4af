# prayerbook/render.py
"""
Static HTML page for a classified tree.

Top-level categories become sidebar buttons and sections. Nested nodes are
rendered as sub-sections at any depth. Every leaf bucket is grouped by
author (canonical order first) and numbered from 1 across its authors.
"""
from __future__ import annotations

import html
from pathlib import Path
from typing import List, Sequence, Union

from slugify import slugify  # type: ignore

from prayerbook.config import cfg
from prayerbook.models import AUTHORS, Annotation, LinedParagraph, Paragraph, Prayer, Tree, paragraph_text
from prayerbook.pipeline.assemble import group_by_author


def esc(s) -> str:
    return html.escape(str(s), quote=True)


def preview_text(content: Sequence[Paragraph], max_chars: int = cfg.PREVIEW_MAX_CHARS) -> str:
    """Leading paragraphs up to max_chars, cut on word boundaries."""
    preview = ""
    truncated = False
    for item in content:
        text = paragraph_text(item).strip()
        if not text:
            continue
        sep = " " if preview else ""
        candidate = preview + sep + text
        if len(candidate) <= max_chars:
            preview = candidate
            continue

        remaining = max_chars - len(preview) - len(sep)
        if remaining > 0:
            built = ""
            for word in text.split():
                tentative = f"{built} {word}" if built else word
                if len(tentative) > remaining:
                    break
                built = tentative
            if built:
                preview = preview + sep + built
        truncated = True
        break

    if not preview:
        return ""
    return preview.strip() + "…\n…" if truncated else preview


def render_paragraph(item: Paragraph) -> str:
    if isinstance(item, Annotation):
        return f'<p class="content-{esc(item.kind)}">{esc(item.text)}</p>'
    if isinstance(item, LinedParagraph):
        lines = esc(",".join(str(n) for n in item.lines))
        return f'<p class="content-lines" data-lines="{lines}">{esc(item.text)}</p>'
    return f"<p>{esc(item)}</p>"


def render_prayer(prayer: Prayer, category_slug: str, number: int) -> str:
    prayer_id = f"{category_slug}-p{prayer.position}"
    body = "\n".join(render_paragraph(c) for c in prayer.content)
    return f"""
    <article class="prayer" data-prayer-id="{esc(prayer_id)}" data-category="{esc(category_slug)}"
             data-author="{esc(prayer.author)}" data-number="{number}">
      <button class="prayer-toggle" type="button" aria-expanded="false" aria-controls="body-{esc(prayer_id)}">
        <div class="prayer-inner">
          <div class="prayer-number" aria-hidden="true">{number}.</div>
          <div class="prayer-content">
            <div class="prayer-preview"><p>{esc(preview_text(prayer.content))}</p></div>
            <div class="prayer-body" id="body-{esc(prayer_id)}" hidden>
            {body}
            </div>
          </div>
        </div>
      </button>
    </article>"""


def render_bucket(prayers: List[Prayer], category_slug: str, depth: int,
                  authors: Sequence[str] = AUTHORS) -> str:
    level = min(depth + 1, 6)
    counter = 0
    sections: List[str] = []
    for author, entries in group_by_author(prayers, authors).items():
        items: List[str] = []
        for prayer in entries:
            counter += 1
            items.append(render_prayer(prayer, category_slug, counter))
        sections.append(f"""
      <section class="author-group" data-author="{esc(author)}">
        <h{level} class="author-heading">{esc(author)}</h{level}>
        <div class="prayers-list">{"".join(items)}
        </div>
      </section>""")
    return "".join(sections)


def render_node(label: str, node: Union[List[Prayer], Tree], slug: str, depth: int,
                authors: Sequence[str] = AUTHORS) -> str:
    level = min(depth, 6)
    if isinstance(node, dict):
        inner = "".join(
            render_node(sub, child, slugify(f"{slug} {sub}"), depth + 1, authors)
            for sub, child in node.items()
        )
    else:
        inner = render_bucket(node, slug, depth, authors)

    css = "category-section" if depth == 1 else "subcategory-section"
    title_css = "category-title" if depth == 1 else "subcategory-title"
    return f"""
    <section class="{css}" data-category="{esc(slug)}">
      <h{level} class="{title_css}">{esc(label)}</h{level}>{inner}
    </section>"""


def render_document(tree: Tree, authors: Sequence[str] = AUTHORS, title: str = cfg.SITE_TITLE) -> str:
    if not tree:
        raise ValueError("nothing to render: the tree has no categories")

    links: List[str] = []
    sections: List[str] = []
    for idx, (name, node) in enumerate(tree.items()):
        slug = slugify(name)
        active = " is-active" if idx == 0 else ""
        links.append(f"""
            <button class="category-link{active}" type="button" data-category="{esc(slug)}">{esc(name)}</button>""")
        section = render_node(name, node, slug, 1, authors)
        if idx == 0:
            section = section.replace('class="category-section"', 'class="category-section is-active"', 1)
        sections.append(section)

    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{esc(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <link rel="stylesheet" href="styles.css" />
  </head>
  <body>
    <div class="app">
      <aside class="sidebar">
        <div class="sidebar-inner">
          <h1 class="app-title">{esc(title)}</h1>
          <nav class="category-nav">{"".join(links)}
          </nav>
        </div>
      </aside>

      <main class="content">{"".join(sections)}
      </main>
    </div>

    <script src="main.js" defer></script>
  </body>
</html>
"""


def write_html(tree: Tree, path: Union[str, Path], authors: Sequence[str] = AUTHORS) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_document(tree, authors), encoding="utf-8")
