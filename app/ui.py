from html import escape
import re
from typing import Dict, List, Sequence
from urllib.parse import urlencode

from app.models.catalog import ELLIPSIS, Category, ItemDetail, ListingQuery, PaginationView

# Templates are plain strings with __PLACEHOLDER__ slots; they contain CSS/JS braces.

_STYLE = r"""
  <style>
    body { font-family: system-ui, sans-serif; margin: 0; padding: 2rem; background: #f8fafc; }
    main { max-width: 80rem; margin: 0 auto; }
    .types { display: flex; flex-wrap: wrap; gap: .5rem; margin-bottom: 2rem; }
    .types a { padding: .4rem 1rem; border-radius: 999px; background: #e5e7eb; color: #111; text-decoration: none; }
    .types a.active { background: #3b82f6; color: #fff; }
    .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(14rem, 1fr)); gap: 1.5rem; }
    .card { border: 1px solid #e5e7eb; border-radius: .5rem; padding: 1rem; background: #fff; }
    .card .art { height: 12rem; display: flex; align-items: center; justify-content: center; background: #f3f4f6; color: #9ca3af; }
    .card img { max-width: 100%; max-height: 100%; object-fit: contain; }
    .card h3 { text-transform: capitalize; }
    .tag { display: inline-block; padding: .1rem .5rem; margin-right: .3rem; border-radius: 999px; background: #e5e7eb; font-size: .85rem; text-transform: capitalize; }
    .empty { height: 12rem; display: flex; align-items: center; justify-content: center; color: #9ca3af; }
    .pager { margin-top: 2rem; display: flex; justify-content: space-between; align-items: center; }
    .pager a, .pager span.dots, .pager span.current { padding: .4rem .9rem; border-radius: .5rem; background: #e5e7eb; color: #111; text-decoration: none; }
    .pager span.current, .pager a.step { background: #3b82f6; color: #fff; }
  </style>
"""

_SSR_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Pokedex (SSR)</title>
__STYLE__
</head>
<body>
<main>
  <h1>Pokedex (SSR)</h1>
  <h2>Types</h2>
  <nav class="types">__TYPES__</nav>
  __LISTING__
  __PAGER__
</main>
<script id="stubs" type="application/json">__STUBS__</script>
<script>
(async () => {
  const stubs = JSON.parse(document.getElementById("stubs").textContent);
  if (!stubs.length) return;
  try {
    const resp = await fetch("__APP_ROOT__/api/v1/pokemon/details", {
      method: "POST",
      headers: {"Content-Type": "application/json"},
      body: JSON.stringify(stubs),
    });
    const details = await resp.json();
    details.forEach((item, index) => {
      const card = document.querySelector(`.card[data-index="${index}"]`);
      if (!card || !item.image_url) return;
      const art = card.querySelector(".art");
      art.innerHTML = "";
      const img = document.createElement("img");
      img.src = item.image_url;
      img.alt = item.name;
      art.appendChild(img);
      const tags = card.querySelector(".tags");
      tags.innerHTML = "";
      (item.tags || []).forEach((t) => {
        const span = document.createElement("span");
        span.className = "tag";
        span.textContent = t;
        tags.appendChild(span);
      });
    });
  } catch (err) {
    console.error("Error fetching pokemon details:", err);
  }
})();
</script>
</body>
</html>
"""

_INDEX_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Pokedex</title>
__STYLE__
</head>
<body>
<main>
  <h1>Pokedex</h1>
  <h2>Types</h2>
  <nav class="types" id="types"></nav>
  <div id="listing"><div class="empty">Loading...</div></div>
  <div class="pager" id="pager"></div>
</main>
<script>
const APP_ROOT = "__APP_ROOT__";
let inflight = null;

function currentQuery() {
  const params = new URLSearchParams(location.search);
  const type = params.get("type") || "";
  return {types: type ? type.split(",").filter(Boolean) : [], page: params.get("page") || "1"};
}

function href(types, page) {
  const params = new URLSearchParams();
  if (types.length) params.set("type", types.join(","));
  params.set("page", String(page));
  return "?" + params.toString();
}

function go(url) {
  history.pushState(null, "", url);
  load();
}

function link(text, url, cls) {
  const a = document.createElement("a");
  a.textContent = text;
  a.href = url;
  if (cls) a.className = cls;
  a.addEventListener("click", (ev) => { ev.preventDefault(); go(url); });
  return a;
}

async function loadTypes() {
  const nav = document.getElementById("types");
  try {
    const types = await (await fetch(APP_ROOT + "/api/v1/types")).json();
    const q = currentQuery();
    nav.innerHTML = "";
    types.forEach((t) => {
      const active = q.types.includes(t.name);
      const next = active ? q.types.filter((x) => x !== t.name) : [...q.types, t.name];
      nav.appendChild(link(t.name, href(next, 1), active ? "active" : ""));
    });
  } catch (err) {
    console.error("Error fetching types:", err);
  }
}

function render(snap) {
  const listing = document.getElementById("listing");
  if (snap.loading) {
    listing.innerHTML = '<div class="empty">Loading...</div>';
  } else if (!snap.items.length) {
    listing.innerHTML = '<div class="empty">No data</div>';
  } else {
    const grid = document.createElement("div");
    grid.className = "grid";
    snap.items.forEach((item) => {
      const card = document.createElement("div");
      card.className = "card";
      const art = document.createElement("div");
      art.className = "art";
      if (item.image_url) {
        const img = document.createElement("img");
        img.src = item.image_url;
        img.alt = item.name;
        art.appendChild(img);
      } else {
        art.textContent = "Loading...";
      }
      const title = document.createElement("h3");
      title.textContent = item.name;
      const tags = document.createElement("div");
      (item.tags || []).forEach((t) => {
        const span = document.createElement("span");
        span.className = "tag";
        span.textContent = t;
        tags.appendChild(span);
      });
      card.append(art, title, tags);
      grid.appendChild(card);
    });
    listing.replaceChildren(grid);
  }

  const p = snap.pagination;
  const types = snap.query.categories;
  const pager = document.getElementById("pager");
  const info = document.createElement("div");
  info.textContent = `Page ${p.page} of ${p.total_pages}`;
  const controls = document.createElement("div");
  if (p.prev_page !== null) controls.appendChild(link("Prev", href(types, p.prev_page), "step"));
  p.markers.forEach((m) => {
    if (m === "...") {
      const s = document.createElement("span");
      s.className = "dots";
      s.textContent = "...";
      controls.appendChild(s);
    } else if (m === p.page) {
      const s = document.createElement("span");
      s.className = "current";
      s.textContent = String(m);
      controls.appendChild(s);
    } else {
      controls.appendChild(link(String(m), href(types, m)));
    }
  });
  if (p.next_page !== null) controls.appendChild(link("Next", href(types, p.next_page), "step"));
  pager.replaceChildren(info, controls);
}

async function load() {
  loadTypes();
  if (inflight) inflight.abort();
  const ctrl = new AbortController();
  inflight = ctrl;
  try {
    const resp = await fetch(APP_ROOT + "/api/v1/listing/stream" + location.search, {signal: ctrl.signal});
    const reader = resp.body.getReader();
    const decoder = new TextDecoder();
    let buf = "";
    for (;;) {
      const {value, done} = await reader.read();
      if (done) break;
      buf += decoder.decode(value, {stream: true});
      let nl;
      while ((nl = buf.indexOf("\n")) >= 0) {
        const line = buf.slice(0, nl);
        buf = buf.slice(nl + 1);
        if (line.trim()) render(JSON.parse(line));
      }
    }
  } catch (err) {
    if (err.name !== "AbortError") console.error("Error fetching pokemons:", err);
  }
}

window.addEventListener("popstate", load);
load();
</script>
</body>
</html>
"""


def _query_href(query: ListingQuery) -> str:
    return "?" + urlencode(query.to_query_params())


def _render_types(categories: Sequence[Category], query: ListingQuery) -> str:
    links: List[str] = []
    for category in categories:
        cls = "active" if category.name in query.categories else ""
        target = _query_href(query.toggle_category(category.name))
        links.append(f'<a class="{cls}" href="{escape(target)}">{escape(category.name)}</a>')
    return "".join(links)


def _render_card(index: int, item: ItemDetail) -> str:
    if item.image_url:
        art = f'<img src="{escape(item.image_url)}" alt="{escape(item.name)}" />'
    else:
        art = "Loading..."
    tags = "".join(f'<span class="tag">{escape(t)}</span>' for t in item.tags or [])
    return (
        f'<div class="card" data-index="{index}">'
        f'<div class="art">{art}</div>'
        f"<h3>{escape(item.name)}</h3>"
        f'<div class="tags">{tags}</div>'
        "</div>"
    )


def _render_listing(items: Sequence[ItemDetail]) -> str:
    if not items:
        return '<div class="empty">No data</div>'
    cards = "".join(_render_card(i, item) for i, item in enumerate(items))
    return f'<div class="grid">{cards}</div>'


def _render_pager(pagination: PaginationView, query: ListingQuery) -> str:
    parts: List[str] = []
    if pagination.prev_page is not None:
        parts.append(f'<a class="step" rel="prev" href="{escape(_query_href(query.with_page(pagination.prev_page)))}">Prev</a>')
    for marker in pagination.markers:
        if marker == ELLIPSIS:
            parts.append('<span class="dots">...</span>')
        elif marker == pagination.page:
            parts.append(f'<span class="current">{marker}</span>')
        else:
            parts.append(f'<a href="{escape(_query_href(query.with_page(int(marker))))}">{marker}</a>')
    if pagination.next_page is not None:
        parts.append(f'<a class="step" rel="next" href="{escape(_query_href(query.with_page(pagination.next_page)))}">Next</a>')
    return (
        '<div class="pager">'
        f"<div>Page {pagination.page} of {pagination.total_pages}</div>"
        f'<div>{"".join(parts)}</div>'
        "</div>"
    )


def _stubs_json(items: Sequence[ItemDetail]) -> str:
    payload = "[" + ",".join(item.model_dump_json(include={"name", "detail_url"}) for item in items) + "]"
    # keep the payload from closing the <script> element
    return payload.replace("</", "<\\/")


def _fill(template: str, values: Dict[str, str]) -> str:
    # single pass: substituted text is never scanned for placeholders again
    pattern = re.compile("|".join(re.escape(key) for key in values))
    return pattern.sub(lambda m: values[m.group(0)], template)


def render_index_html(app_root: str = "") -> str:
    return _fill(_INDEX_TEMPLATE, {"__STYLE__": _STYLE, "__APP_ROOT__": escape(app_root)})


def render_ssr_html(
    categories: Sequence[Category],
    items: Sequence[ItemDetail],
    pagination: PaginationView,
    query: ListingQuery,
    app_root: str = "",
) -> str:
    return _fill(_SSR_TEMPLATE, {
        "__STYLE__": _STYLE,
        "__TYPES__": _render_types(categories, query),
        "__LISTING__": _render_listing(items),
        "__PAGER__": _render_pager(pagination, query),
        "__STUBS__": _stubs_json(items),
        "__APP_ROOT__": escape(app_root),
    })
