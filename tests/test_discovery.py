from __future__ import annotations

from pathlib import Path

from nicehtml.discovery import discover_fragments, page_from_path
from nicehtml.types import Page

PAGE = """
<html>
<head>
  <script type="text/nicehtml" src="header.nh" data-role="header"></script>
  <script src="app.js"></script>
</head>
<body>
  <script type="text/nicehtml">
div
    "inline body"
  </script>
  <script type="text/javascript">console.log("skip")</script>
  <script type="TEXT/NICEHTML" src="https://cdn.test/footer.nh"></script>
</body>
</html>
"""


def test_fragments_are_classified_in_document_order():
    fragments = discover_fragments(
        Page(html=PAGE, base_url="https://site.test/docs/index.html")
    )

    assert [f.origin for f in fragments] == ["remote", "inline", "remote"]
    assert [f.discovery_index for f in fragments] == [0, 1, 2]
    assert fragments[0].source == "https://site.test/docs/header.nh"
    assert fragments[0].attributes == {"data-role": "header"}
    assert fragments[0].raw_content is None
    assert '"inline body"' in (fragments[1].raw_content or "")
    assert fragments[1].source is None
    assert fragments[2].source == "https://cdn.test/footer.nh"


def test_sources_kept_as_is_without_base_url():
    fragments = discover_fragments(Page(html=PAGE))
    assert fragments[0].source == "header.nh"


def test_custom_script_type():
    html = '<script type="text/x-other">p</script><script type="text/nicehtml">a</script>'
    fragments = discover_fragments(Page(html=html), script_type="text/x-other")
    assert len(fragments) == 1
    assert fragments[0].raw_content == "p"


def test_page_without_fragments():
    assert discover_fragments(Page(html="<p>nothing here</p>")) == []


def test_page_from_path_uses_file_base(tmp_path: Path):
    page_file = tmp_path / "index.html"
    page_file.write_text(
        '<script type="text/nicehtml" src="parts/card.nh"></script>',
        encoding="utf-8",
    )

    page = page_from_path(page_file)
    fragments = discover_fragments(page)

    assert page.base_url == page_file.resolve().as_uri()
    assert fragments[0].source == (tmp_path / "parts" / "card.nh").resolve().as_uri()
