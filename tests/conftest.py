from __future__ import annotations

from pathlib import Path

import pytest

from cargo_txt.build import convert_doc_dir

ALL_HTML = """<!DOCTYPE html>
<html><head><title>List of all items in this crate</title></head><body>
<nav class="sidebar"><a href="index.html">my_lib</a></nav>
<main>
  <div class="main-heading">
    <h1>List of all items</h1>
    <rustdoc-toolbar></rustdoc-toolbar>
  </div>
  <h3 id="structs">Structs</h3>
  <ul class="all-items">
    <li><a href="struct.Alpha.html">Alpha</a></li>
    <li><a href="de/struct.Beta.html">de::<wbr>Beta</a></li>
  </ul>
  <h3 id="functions">Functions</h3>
  <ul class="all-items">
    <li><a href="fn.gamma.html">gamma</a></li>
  </ul>
</main>
</body></html>
"""

INDEX_HTML = """<html><body><main>
  <div class="main-heading">
    <div class="rustdoc-breadcrumbs"><a href="index.html">my_lib</a></div>
    <h1>Crate <span>my_<wbr>lib</span> <button id="copy-path">Copy item path</button></h1>
    <span class="sub-heading"><a class="src" href="../src/my_lib/lib.rs.html#1-10">Source</a></span>
  </div>
  <details class="toggle top-doc" open>
    <summary class="hideme"><span>Expand description</span></summary>
    <div class="docblock"><p>Tools for the <code>my-lib</code> crate.</p></div>
  </details>
  <h2 id="structs" class="section-header">Structs<a href="#structs" class="anchor">§</a></h2>
  <dl class="item-table">
    <dt><a class="struct" href="struct.Alpha.html">Alpha</a></dt>
    <dd>The first letter.</dd>
  </dl>
</main></body></html>
"""

ALPHA_HTML = """<html><body><main>
  <div class="main-heading">
    <div class="rustdoc-breadcrumbs"><a href="index.html">my_lib</a></div>
    <h1>Struct <span class="struct">Alpha</span><button id="copy-path">Copy item path</button></h1>
    <a class="src" href="../src/my_lib/lib.rs.html#3">Source</a>
  </div>
  <pre class="rust item-decl"><code>pub struct <a class="struct" href="#">Alpha</a>;</code></pre>
  <details class="toggle top-doc" open>
    <summary class="hideme"><span>Expand description</span></summary>
    <div class="docblock"><p>The first letter.</p></div>
  </details>
</main></body></html>
"""

BETA_HTML = """<html><body><main>
  <h1>Struct <span class="struct">Beta</span></h1>
  <div class="docblock"><p>Deserialisation helper.</p></div>
</main></body></html>
"""

GAMMA_HTML = """<html><body><main>
  <h1>Function <span class="fn">gamma</span></h1>
  <pre class="rust item-decl"><code>pub fn gamma() -&gt; u8</code></pre>
</main></body></html>
"""


def seed_rustdoc(doc_dir: Path) -> Path:
    (doc_dir / "de").mkdir(parents=True, exist_ok=True)
    (doc_dir / "all.html").write_text(ALL_HTML, encoding="utf-8")
    (doc_dir / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (doc_dir / "struct.Alpha.html").write_text(ALPHA_HTML, encoding="utf-8")
    (doc_dir / "de" / "struct.Beta.html").write_text(BETA_HTML, encoding="utf-8")
    (doc_dir / "fn.gamma.html").write_text(GAMMA_HTML, encoding="utf-8")
    return doc_dir


@pytest.fixture
def rustdoc_dir(tmp_path: Path) -> Path:
    return seed_rustdoc(tmp_path / "target" / "doc" / "my_lib")


@pytest.fixture
def built_target(rustdoc_dir: Path, tmp_path: Path) -> Path:
    target = tmp_path / "target"
    convert_doc_dir(rustdoc_dir, "my-lib", target / "docmd" / "my_lib")
    return target
