from boxdsync.workflows.url_utils import (
    UniqueList,
    ensure_absolute_url,
    normalize_film_url,
    normalize_site_url,
)


def test_normalize_strips_member_segment():
    assert normalize_film_url("https://letterboxd.com/someone/film/the-thing/") == "https://letterboxd.com/film/the-thing/"


def test_normalize_drops_trailing_path_and_lowercases_host():
    url = "https://Letterboxd.com/film/the-thing/reviews/by/activity/"

    assert normalize_film_url(url) == "https://letterboxd.com/film/the-thing/"


def test_normalize_keeps_foreign_hosts_with_marker():
    assert normalize_film_url("https://site.example/member/film/example-film/") == "https://site.example/film/example-film/"


def test_normalize_returns_none_without_slug_or_marker():
    assert normalize_film_url("https://boxd.it/abcd") is None
    assert normalize_film_url("https://letterboxd.com/film/") is None
    assert normalize_film_url("not a url") is None
    assert normalize_film_url("") is None


def test_normalize_site_url_passes_third_party_links_through():
    imdb = "https://www.imdb.com/title/tt0084787/film/x/"

    assert normalize_site_url(imdb) == imdb
    assert normalize_site_url("https://letterboxd.com/someone/film/alien/1/") == "https://letterboxd.com/film/alien/"
    assert normalize_site_url("https://letterboxd.com/someone/") == "https://letterboxd.com/someone/"


def test_ensure_absolute_url():
    assert ensure_absolute_url("/film/alien/", "https://letterboxd.com/someone/") == "https://letterboxd.com/film/alien/"
    assert ensure_absolute_url("https://cdn.example/p.jpg", "https://letterboxd.com/") == "https://cdn.example/p.jpg"
    assert ensure_absolute_url("  ", "https://letterboxd.com/") is None
    assert ensure_absolute_url(None, "https://letterboxd.com/") is None
    assert ensure_absolute_url("relative/path", "") is None


def test_unique_list_keeps_first_occurrence():
    names = UniqueList(["Kurt Russell", " Kurt Russell ", "", None, "Keith David"])
    names.add("Kurt Russell")
    names.extend(["Wilford Brimley", "  "])

    assert names.to_list() == ["Kurt Russell", "Keith David", "Wilford Brimley"]
    assert len(names) == 3
    assert "Keith David" in names
