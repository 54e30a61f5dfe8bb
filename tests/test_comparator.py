# File: tests/test_comparator.py
import copy

import pytest

from seo_scout.comparator import (
    PageStatus,
    Severity,
    SiteComparator,
    WarningType,
    paths_similar,
)
from seo_scout.config import ComparisonConfig, UrlPair
from seo_scout.crawler.models import CrawlResultSet
from seo_scout.events import RecordingObserver

OLD = "https://old.example.com"
NEW = "https://new.example.com"


def site(base, *pages):
    return CrawlResultSet(base_url=f"{base}/", pages=list(pages))


def test_migration_report(scenario_sites):
    old_site, new_site = scenario_sites
    result = SiteComparator().compare(old_site, new_site)

    by_old = {c.old_url: c for c in result.compared_pages}
    assert set(by_old) == {f"{OLD}/", f"{OLD}/about", f"{OLD}/contact", f"{OLD}/services"}
    assert by_old[f"{OLD}/"].status is PageStatus.IDENTICAL
    assert by_old[f"{OLD}/about"].status is PageStatus.IDENTICAL
    assert by_old[f"{OLD}/services"].differences == ["title"]
    assert by_old[f"{OLD}/contact"].differences == ["status"]

    assert [b.url for b in result.broken_links] == [f"{NEW}/contact"]
    assert result.broken_links[0].old_url == f"{OLD}/contact"
    assert [m.url for m in result.missing_on_old] == [f"{NEW}/blog"]
    assert result.missing_on_new == []
    assert result.redirects == []

    critical = [w for w in result.warnings if w.severity is Severity.CRITICAL]
    assert [(w.type, w.page) for w in critical] == [(WarningType.PAGE_NOT_FOUND, f"{NEW}/contact")]

    summary = result.summary
    assert summary.total_compared == 4
    assert summary.identical == 2
    assert summary.with_differences == 2
    assert summary.broken_links_found == 1
    assert summary.critical_warnings == 1
    assert summary.missing_on_old == 1
    assert summary.missing_on_new == 0
    assert summary.redirects_found == 0


def test_summary_matches_lists(scenario_sites):
    result = SiteComparator().compare(*scenario_sites)
    s = result.summary
    assert s.identical + s.with_differences == len(result.compared_pages)
    assert s.total_compared == len(result.compared_pages) + len(result.missing_on_new)
    assert s.missing_on_new == len(result.missing_on_new)
    assert s.missing_on_old == len(result.missing_on_old)
    assert s.redirects_found == len(result.redirects)
    assert s.broken_links_found == len(result.broken_links)
    assert s.total_warnings == len(result.warnings)


def test_compare_is_deterministic_and_pure(scenario_sites):
    old_site, new_site = scenario_sites
    snapshot = (copy.deepcopy(old_site), copy.deepcopy(new_site))
    comparator = SiteComparator()
    first = comparator.compare(old_site, new_site)
    second = comparator.compare(old_site, new_site)
    assert first.to_dict() == second.to_dict()
    assert (old_site, new_site) == snapshot


def test_missing_on_new(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/"), page_factory(f"{OLD}/pricing", title="Pricing"))
    new_site = site(NEW, page_factory(f"{NEW}/"))
    result = SiteComparator().compare(old_site, new_site)

    assert [(m.url, m.title) for m in result.missing_on_new] == [(f"{OLD}/pricing", "Pricing")]
    assert result.summary.total_compared == 2
    assert result.summary.identical == 1


def test_last_segment_fallback(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/company/about"))
    new_site = site(NEW, page_factory(f"{NEW}/about"), page_factory(f"{NEW}/team/about"))
    mapping = SiteComparator().map_urls(old_site, new_site)
    # first match wins
    assert mapping == {f"{OLD}/company/about": f"{NEW}/about"}


def test_exact_path_beats_segment_match(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/team/about"))
    new_site = site(NEW, page_factory(f"{NEW}/about"), page_factory(f"{NEW}/team/about"))
    mapping = SiteComparator().map_urls(old_site, new_site)
    assert mapping == {f"{OLD}/team/about": f"{NEW}/team/about"}


def test_root_never_matches_by_segment(page_factory):
    new_site = site(NEW, page_factory(f"{NEW}/home"))
    assert SiteComparator.find_corresponding_url("/", new_site) is None
    assert not paths_similar("/", "/")
    assert paths_similar("/a/b/", "/c/b")


def test_custom_mapping_takes_precedence(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/old-name", title="X"), page_factory(f"{OLD}/other"))
    new_site = site(NEW, page_factory(f"{NEW}/new-name", title="X"), page_factory(f"{NEW}/other"))
    config = ComparisonConfig(custom_url_mapping=[UrlPair(old_url=f"{OLD}/old-name", new_url=f"{NEW}/new-name")])
    result = SiteComparator(config).compare(old_site, new_site)

    assert [(c.old_url, c.new_url) for c in result.compared_pages] == [(f"{OLD}/old-name", f"{NEW}/new-name")]
    assert result.compared_pages[0].status is PageStatus.IDENTICAL
    # auto-mapping is not consulted: /other is reported as new, never compared
    assert [m.url for m in result.missing_on_old] == [f"{NEW}/other"]


def test_custom_mapping_to_unknown_new_url(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/a"))
    new_site = site(NEW, page_factory(f"{NEW}/b"))
    config = ComparisonConfig(custom_url_mapping=[UrlPair(old_url=f"{OLD}/a", new_url=f"{NEW}/gone")])
    result = SiteComparator(config).compare(old_site, new_site)
    assert [m.url for m in result.missing_on_new] == [f"{OLD}/a"]
    assert [m.url for m in result.missing_on_old] == [f"{NEW}/b"]


def test_custom_mapping_tolerates_unnormalized_urls(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/a"))
    new_site = site(NEW, page_factory(f"{NEW}/b"))
    config = ComparisonConfig(
        custom_url_mapping=[UrlPair(old_url="https://www.OLD.example.com/a/", new_url=f"{NEW}/b#top")]
    )
    result = SiteComparator(config).compare(old_site, new_site)
    assert [(c.old_url, c.new_url) for c in result.compared_pages] == [(f"{OLD}/a", f"{NEW}/b")]


def test_no_mapping_method_gives_empty_report(scenario_sites):
    observer = RecordingObserver()
    config = ComparisonConfig(auto_map_urls=False)
    result = SiteComparator(config, observer=observer).compare(*scenario_sites)

    assert result.compared_pages == []
    assert result.missing_on_old == []
    assert result.summary.total_compared == 0
    assert any("No URL mapping method" in m for m in observer.messages())
    assert observer.results == [result]


def test_thresholds(page_factory):
    old = page_factory(f"{OLD}/p", response_time_ms=100, size_bytes=10000)
    within = page_factory(f"{NEW}/p", response_time_ms=200, size_bytes=15000)
    beyond = page_factory(f"{NEW}/p", response_time_ms=201, size_bytes=15001)

    assert SiteComparator.compare_pages(old, within).differences == []
    assert SiteComparator.compare_pages(old, beyond).differences == ["response_time", "size"]
    comparison = SiteComparator.compare_pages(old, beyond)
    assert comparison.old_data["response_time"] == 100
    assert comparison.new_data["size"] == 15001


def test_attribute_differences_in_fixed_order(page_factory):
    old = page_factory(f"{OLD}/p", title="A", description="d1", h1="H", canonical="c1", status=200)
    new = page_factory(f"{NEW}/p", title="B", description="d2", h1="H2", canonical="c2", status=301)
    comparison = SiteComparator.compare_pages(old, new)
    assert comparison.differences == ["title", "description", "h1", "canonical", "status"]
    assert comparison.old_data["title"] == "A"
    assert comparison.new_data["status"] == 301


@pytest.mark.parametrize(
    "old_fields,new_fields,expected",
    [
        ({}, {"robots": "NOINDEX, follow"}, [(WarningType.NOINDEX, Severity.CRITICAL)]),
        ({"canonical": "https://a/x"}, {"canonical": "https://a/y"}, [(WarningType.CANONICAL_CHANGED, Severity.WARNING)]),
        ({"canonical": "https://a/x"}, {"canonical": ""}, []),
        ({"canonical": ""}, {"canonical": "https://a/y"}, []),
        ({"response_time_ms": 100}, {"response_time_ms": 201}, [(WarningType.PERFORMANCE_DEGRADATION, Severity.WARNING)]),
        ({"response_time_ms": 100}, {"response_time_ms": 200}, []),
        ({}, {"status": 404}, [(WarningType.PAGE_NOT_FOUND, Severity.CRITICAL)]),
        ({}, {"status": 500}, []),
    ],
)
def test_critical_warnings(page_factory, old_fields, new_fields, expected):
    old = page_factory(f"{OLD}/p", **old_fields)
    new = page_factory(f"{NEW}/p", **new_fields)
    warnings = SiteComparator.check_critical_warnings(old, new)
    assert [(w.type, w.severity) for w in warnings] == expected
    assert all(w.page == new.url for w in warnings)


def test_redirects_and_broken_toggles(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/moved", status=301, title="Moved"))
    new_site = site(NEW, page_factory(f"{NEW}/moved", status=500))

    result = SiteComparator().compare(old_site, new_site)
    assert [(r.from_url, r.to_url, r.status, r.old_title) for r in result.redirects] == [
        (f"{OLD}/moved", f"{NEW}/moved", 301, "Moved")
    ]
    assert [(b.url, b.status) for b in result.broken_links] == [(f"{NEW}/moved", 500)]

    config = ComparisonConfig(check_redirects=False, check_broken_links=False)
    quiet = SiteComparator().compare(old_site, new_site, config)
    assert quiet.redirects == []
    assert quiet.broken_links == []
    assert quiet.summary.with_differences == 1


def test_followed_redirect_is_reported_with_first_hop_status(page_factory):
    old_site = site(OLD, page_factory(f"{OLD}/old", status=200, redirect_status=301, title="Old"))
    new_site = site(NEW, page_factory(f"{NEW}/old", status=200, title="Old"))

    result = SiteComparator().compare(old_site, new_site)
    assert [(r.from_url, r.status) for r in result.redirects] == [(f"{OLD}/old", 301)]
