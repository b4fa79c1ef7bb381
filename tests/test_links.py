from __future__ import annotations

from feedkeeper.ingestion.images import first_image_url, resolve_image_url
from feedkeeper.ingestion.links import extract_anchor_links, is_absolute_url, resolve_single_link


def test_single_feed_link_resolves() -> None:
    assert resolve_single_link(["https://example.com/a"], "", "Breaking news.") == "https://example.com/a"


def test_duplicates_are_compared_case_insensitively_after_trimming() -> None:
    raw = '<p>Read <a href=" HTTPS://Example.com/A ">more</a></p>'

    resolved = resolve_single_link(["https://example.com/a"], raw, "Read more https://EXAMPLE.com/a")

    assert resolved == "https://example.com/a"


def test_link_from_anchor_alone_resolves() -> None:
    raw = "<a class='more' href='https://news.example.org/story?id=1&amp;ref=rss'>More</a>"

    assert resolve_single_link([], raw, "More") == "https://news.example.org/story?id=1&ref=rss"


def test_bare_url_in_text_alone_resolves() -> None:
    assert resolve_single_link([], "", "See http://example.net/path for details") == "http://example.net/path"


def test_two_distinct_links_are_ambiguous() -> None:
    raw = '<a href="https://example.com/other">other</a>'

    assert resolve_single_link(["https://example.com/a"], raw, "Breaking news.") is None


def test_no_candidates_resolves_nothing() -> None:
    assert resolve_single_link([], "<p>No links here</p>", "No links here") is None


def test_non_web_item_links_and_relative_hrefs_are_ignored() -> None:
    raw = '<a href="/relative/path">rel</a><a href="#top">top</a>'

    resolved = resolve_single_link(["ftp://files.example.com/a", "https://example.com/a"], raw, "")

    assert resolved == "https://example.com/a"


def test_is_absolute_url() -> None:
    assert is_absolute_url("https://example.com")
    assert not is_absolute_url("/path/only")
    assert not is_absolute_url("example.com/page")
    assert not is_absolute_url("mailto:someone@example.com", ("http", "https"))


def test_extract_anchor_links_in_document_order() -> None:
    raw = '<A HREF="https://one.example">1</A> <img src="x"> <a title="t" href=\'https://two.example\'>2</a>'

    assert extract_anchor_links(raw) == ["https://one.example", "https://two.example"]


def test_data_href_attributes_are_not_links() -> None:
    raw = '<p><a data-href="https://tracker.example/x" href="https://example.com/a">Read more</a></p>'

    assert extract_anchor_links(raw) == ["https://example.com/a"]
    assert resolve_single_link([], raw, "Read more") == "https://example.com/a"


def test_first_image_url_returns_none_without_images() -> None:
    assert first_image_url("<p>Plain text</p>") is None
    assert first_image_url("") is None
    assert first_image_url(None) is None


def test_first_image_url_returns_first_in_document_order() -> None:
    raw = (
        '<p>Intro</p><IMG alt="lead" SRC="https://cdn.example.com/lead.jpg">'
        "<img src='https://cdn.example.com/second.jpg'>"
    )

    assert first_image_url(raw) == "https://cdn.example.com/lead.jpg"


def test_first_image_url_decodes_entities() -> None:
    raw = '<img src="https://cdn.example.com/i.jpg?w=200&amp;h=100" />'

    assert first_image_url(raw) == "https://cdn.example.com/i.jpg?w=200&h=100"


def test_first_image_url_skips_lazy_loading_attributes() -> None:
    raw = '<img data-src="https://cdn.example.com/full.jpg" src="https://cdn.example.com/lead.jpg">'

    assert first_image_url(raw) == "https://cdn.example.com/lead.jpg"
    assert first_image_url('<img data-src="https://cdn.example.com/full.jpg">') is None


def test_resolve_image_url_against_entry_link() -> None:
    assert resolve_image_url("/img/a.png", "https://example.com/news/1") == "https://example.com/img/a.png"
    assert resolve_image_url("https://cdn.example.com/a.png", "https://example.com/") == "https://cdn.example.com/a.png"
    assert resolve_image_url("a.png", "") == "a.png"
