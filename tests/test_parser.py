from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import rss_document
from feedkeeper.errors import ParseError
from feedkeeper.ingestion.parser import DEFAULT_FEED_TITLE, parse_feed

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <id>urn:uuid:feed</id>
  <updated>2024-03-01T12:00:00Z</updated>
  <entry>
    <title>With content</title>
    <id>urn:uuid:1</id>
    <link rel="alternate" href="https://example.com/atom/1"/>
    <updated>2024-03-01T10:00:00Z</updated>
    <published>2024-03-01T09:30:00+02:00</published>
    <summary>Short summary</summary>
    <content type="html">&lt;p&gt;Full body&lt;/p&gt;</content>
  </entry>
  <entry>
    <title>Summary only</title>
    <id>urn:uuid:2</id>
    <updated>2024-03-02T08:00:00Z</updated>
    <summary type="html">&lt;p&gt;Only the summary&lt;/p&gt;</summary>
  </entry>
</feed>
"""


def test_parse_rss_items_in_source_order() -> None:
    items = "".join(
        f"""<item>
              <title>Story {index}</title>
              <link>https://example.com/{index}</link>
              <description><![CDATA[<p>Body {index}</p>]]></description>
              <pubDate>Tue, 05 Mar 2024 1{index}:00:00 GMT</pubDate>
            </item>"""
        for index in range(3)
    )

    parsed = parse_feed(rss_document(items).encode("utf-8"))

    assert parsed.title == "Example Feed"
    assert [item.title for item in parsed.items] == ["Story 0", "Story 1", "Story 2"]
    first = parsed.items[0]
    assert first.links == ["https://example.com/0"]
    assert "Body 0" in first.body
    assert first.published == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)


def test_parse_rss_prefers_encoded_content_over_description() -> None:
    item = """<item>
        <title>Both</title>
        <link>https://example.com/both</link>
        <description>Teaser</description>
        <content:encoded><![CDATA[<p>Complete article body</p>]]></content:encoded>
    </item>"""

    parsed = parse_feed(rss_document(item).encode("utf-8"))

    assert "Complete article body" in parsed.items[0].body
    assert "Teaser" not in parsed.items[0].body


def test_parse_atom_content_and_summary_fallback() -> None:
    parsed = parse_feed(ATOM_FEED.encode("utf-8"))

    assert parsed.title == "Atom Example"
    with_content, summary_only = parsed.items
    assert "Full body" in with_content.body
    assert with_content.links == ["https://example.com/atom/1"]
    assert with_content.published == datetime(2024, 3, 1, 7, 30, tzinfo=timezone.utc)
    assert with_content.published.utcoffset() == timedelta(hours=2)
    assert "Only the summary" in summary_only.body
    # No published date: the updated timestamp is used instead.
    assert summary_only.published == datetime(2024, 3, 2, 8, 0, tzinfo=timezone.utc)


def test_parse_tolerates_missing_title_and_date() -> None:
    item = "<item><description>No title or date</description></item>"

    parsed = parse_feed(rss_document(item).encode("utf-8"))

    raw = parsed.items[0]
    assert raw.title is None
    assert raw.published is None
    assert raw.links == []
    assert raw.body == "No title or date"


def test_parse_defaults_feed_title() -> None:
    document = """<?xml version="1.0"?><rss version="2.0"><channel>
        <item><title>Only item</title></item>
    </channel></rss>"""

    parsed = parse_feed(document.encode("utf-8"))

    assert parsed.title == DEFAULT_FEED_TITLE
    assert parsed.items[0].body == ""


@pytest.mark.parametrize(
    "payload",
    [b"", b"this is not a feed", b"<html><body><p>Hello</p></body></html>"],
)
def test_parse_rejects_non_feed_documents(payload: bytes) -> None:
    with pytest.raises(ParseError):
        parse_feed(payload)


def test_parse_keeps_publisher_utc_offset() -> None:
    document = rss_document(
        """<item>
             <title>Offset</title>
             <pubDate>Tue, 05 Mar 2024 10:00:00 +0200</pubDate>
           </item>
           <item>
             <title>Legacy zone</title>
             <pubDate>Tue, 05 Mar 2024 10:00:00 EST</pubDate>
           </item>"""
    )

    offset, legacy = parse_feed(document.encode("utf-8")).items

    assert offset.published == datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc)
    assert offset.published.utcoffset() == timedelta(hours=2)
    assert legacy.published == datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc)


def test_parse_treats_body_as_content_not_a_path(tmp_path) -> None:
    feed_file = tmp_path / "feed.xml"
    feed_file.write_text(rss_document("<item><title>On disk</title></item>"), encoding="utf-8")

    with pytest.raises(ParseError):
        parse_feed(str(feed_file).encode("utf-8"))
