# File: tests/test_parser.py
import pytest

from seo_scout.config import CrawlerConfig
from seo_scout.crawler.models import LinkType
from seo_scout.parser.html_parser import PageExtractor, get_link_type

BASE = "https://example.com/"
PAGE = "https://example.com/blog/post"

FULL_PAGE = """
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>  Post title  </title>
  <meta name="description" content="A short description">
  <meta name="robots" content="index, follow">
  <meta name="viewport" content="width=device-width">
  <link rel="canonical" href="https://example.com/blog/post">
  <link rel="stylesheet" href="/static/site.css">
  <meta property="og:title" content="OG title">
  <meta property="og:description" content="OG description">
  <meta property="og:image" content="https://example.com/og.png">
  <meta property="og:type" content="article">
  <meta name="twitter:card" content="summary">
  <meta name="twitter:title" content="Tw title">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Article"}</script>
  <script type="application/ld+json">{"@graph": [{"@type": "Organization"}, {"@type": ["WebPage", "Article"]}]}</script>
  <script type="application/ld+json">{ not json </script>
  <script src="/static/app.js"></script>
</head>
<body>
  <h1>Main heading</h1>
  <h1>Second h1</h1>
  <h2>Section</h2>
  <h3>  </h3>
  <div itemscope itemtype="https://schema.org/Product"><span>Thing</span></div>
  <p>Hello world</p>
  <style>.hidden { display: none }</style>
  <a href="/about">About us</a>
  <a href="../contact" rel="nofollow" title="Contact page">Contact</a>
  <a href="https://www.example.com/team">Team</a>
  <a href="https://other.org/page">Elsewhere</a>
  <a href="/docs/guide.pdf">Guide</a>
  <a href="mailto:team@example.com">Mail</a>
  <a href="tel:+100">Call</a>
  <a href="javascript:void(0)">JS</a>
  <a href="#top">Top</a>
  <a href="http://[broken">Broken</a>
  <img src="/img/photo.jpg" alt="Photo" width="100" height="50">
  <iframe src="https://video.example.net/embed/1"></iframe>
  <video src="/media/clip.mp4"></video>
</body>
</html>
"""


@pytest.fixture()
def record():
    return PageExtractor().extract(FULL_PAGE, PAGE, BASE)


def test_metadata(record):
    assert record.title == "Post title"
    assert record.description == "A short description"
    assert record.robots == "index, follow"
    assert record.viewport == "width=device-width"
    assert record.canonical == "https://example.com/blog/post"
    assert record.charset == "utf-8"
    assert record.og_title == "OG title"
    assert record.og_description == "OG description"
    assert record.og_image == "https://example.com/og.png"
    assert record.og_type == "article"
    assert record.twitter_card == "summary"
    assert record.twitter_title == "Tw title"
    assert record.twitter_description == ""


def test_headings(record):
    assert record.h1 == "Main heading"
    assert record.headings["h1"] == ["Main heading", "Second h1"]
    assert record.headings["h2"] == ["Section"]
    assert record.headings["h3"] == []
    assert set(record.headings) == {"h1", "h2", "h3", "h4", "h5", "h6"}


def test_structured_data(record):
    sd = record.structured_data
    assert sd.schema_types == ["Article", "Organization", "WebPage", "Product"]
    assert sd.json_ld_count == 2
    assert sd.microdata_count == 1
    assert sd.has_json_ld
    assert sd.has_microdata
    assert [(item.type, item.properties) for item in sd.microdata_items] == [
        ("https://schema.org/Product", {})
    ]


def test_microdata_item_properties():
    html = """
    <div itemscope itemtype="https://schema.org/Product">
      <span itemprop="name"> Thing </span>
      <meta itemprop="sku" content="A-1">
      <img itemprop="image" src="/thing.png" alt="">
      <span itemprop="color">Red</span><span itemprop="color">Blue</span>
      <span itemprop="description"></span>
      <div itemprop="offers" itemscope itemtype="https://schema.org/Offer">
        <span itemprop="price" content="9.99">$9.99</span>
      </div>
    </div>
    """
    sd = PageExtractor().extract(html, PAGE, BASE).structured_data
    product, offer = sd.microdata_items
    assert product.type == "https://schema.org/Product"
    assert product.properties == {
        "name": ["Thing"],
        "sku": ["A-1"],
        "image": ["/thing.png"],
        "color": ["Red", "Blue"],
        "offers": ["$9.99"],
    }
    assert offer.properties == {"price": ["9.99"]}
    assert sd.schema_types == ["Product", "Offer"]
    assert sd.microdata_count == 2


def test_anchor_split(record):
    internal = [link.url for link in record.content.internal_links]
    external = [link.url for link in record.content.external_links]
    assert internal == [
        "https://example.com/about",
        "https://example.com/contact",
        "https://www.example.com/team",
        "https://example.com/docs/guide.pdf",
    ]
    assert external == ["https://other.org/page"]


def test_anchor_attributes(record):
    contact = record.content.internal_links[1]
    assert contact.nofollow is True
    assert contact.title == "Contact page"
    assert contact.anchor_text == "Contact"
    assert contact.source_url == PAGE
    assert record.content.internal_links[0].nofollow is False
    assert record.content.internal_links[3].type is LinkType.DOCUMENT


def test_resources_are_typed(record):
    by_url = {link.url: link.type for link in record.links}
    assert by_url["https://example.com/static/site.css"] is LinkType.STYLESHEET
    assert by_url["https://example.com/static/app.js"] is LinkType.SCRIPT
    assert by_url["https://example.com/img/photo.jpg"] is LinkType.IMAGE
    assert by_url["https://video.example.net/embed/1"] is LinkType.IFRAME
    assert by_url["https://example.com/media/clip.mp4"] is LinkType.MEDIA
    assert not any(u.startswith(("mailto:", "tel:", "javascript:")) for u in by_url)


def test_content_analysis(record):
    assert len(record.content.images) == 1
    image = record.content.images[0]
    assert image.url == "https://example.com/img/photo.jpg"
    assert image.alt == "Photo"
    assert image.width == "100"
    assert record.content.text_length > 0


def test_text_length_ignores_scripts_and_styles():
    html = "<html><body><p>abc</p><script>var x = 1;</script><style>p{}</style></body></html>"
    record = PageExtractor().extract(html, PAGE, BASE)
    assert record.content.text_length == 3


def test_flags_disable_collection():
    config = CrawlerConfig(collect_metadata=False, collect_structured_data=False, collect_content_analysis=False)
    record = PageExtractor(config).extract(FULL_PAGE, PAGE, BASE)
    assert record.title == ""
    assert record.structured_data.schema_types == []
    assert record.content.images == []
    assert record.content.text_length == 0
    # links are always extracted: the crawl depends on them
    assert record.content.internal_links
    assert record.h1 == "Main heading"


def test_empty_document():
    record = PageExtractor().extract("", PAGE, BASE)
    assert record.title == ""
    assert record.h1 == ""
    assert record.links == []
    assert record.content.text_length == 0


def test_http_equiv_charset():
    html = '<head><meta http-equiv="Content-Type" content="text/html; charset=windows-1251"></head>'
    record = PageExtractor().extract(html, PAGE, BASE)
    assert record.charset == "text/html; charset=windows-1251"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/page", LinkType.LINK),
        ("https://example.com/", LinkType.LINK),
        ("https://example.com/photo.JPG", LinkType.IMAGE),
        ("https://example.com/a/report.pdf?dl=1", LinkType.DOCUMENT),
        ("https://example.com/song.mp3", LinkType.MEDIA),
        ("https://example.com/app.js", LinkType.SCRIPT),
        ("https://example.com/site.css", LinkType.STYLESHEET),
        ("https://example.com/archive.zip", LinkType.DOCUMENT),
    ],
)
def test_get_link_type(url, expected):
    assert get_link_type(url) is expected
