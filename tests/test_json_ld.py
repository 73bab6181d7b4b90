import pytest

from boxdsync.workflows.json_ld import (
    JsonLdParseError,
    extract_names,
    extract_rating_value,
    load_json_ld_payload,
    parse_json_ld,
)
from fakes import html_page, movie_json_ld

BASE = "https://letterboxd.com/film/the-thing/"


def test_parse_json_ld_reads_movie_fields():
    html = html_page(json_ld=movie_json_ld(BASE)).text

    data = parse_json_ld(html, BASE)

    assert data is not None
    assert data.movie_url == BASE
    assert data.poster_url == "https://a.ltrbxd.com/resized/the-thing-poster.jpg"
    assert data.description == "Antarctic researchers meet a shape-shifting alien."
    assert data.directors == ["John Carpenter"]
    assert data.genres == ["Horror", "Science Fiction"]
    assert data.cast == ["Kurt Russell", "Keith David"]
    assert data.average_rating == "4.2"
    assert data.studios == ["Universal Pictures"]
    assert data.countries == ["USA"]


@pytest.mark.parametrize(
    "value",
    [
        "John Carpenter",
        {"@type": "Person", "name": "John Carpenter"},
        ["John Carpenter", {"name": "John Carpenter"}, {"name": ""}, 42],
    ],
)
def test_name_fields_accept_every_shape(value):
    assert extract_names(value) == ["John Carpenter"]


def test_directors_and_cast_use_alternate_keys():
    payload = {"@type": "Movie", "directors": "Ridley Scott", "cast": ["Sigourney Weaver", "Tom Skerritt"]}
    html = html_page(json_ld=payload).text

    data = parse_json_ld(html, BASE)

    assert data.directors == ["Ridley Scott"]
    assert data.cast == ["Sigourney Weaver", "Tom Skerritt"]


def test_array_payload_prefers_movie_node():
    payload = [{"@type": "BreadcrumbList"}, {"@type": "Movie", "genre": "Horror"}]
    html = html_page(json_ld=payload).text

    data = parse_json_ld(html, BASE)

    assert data.genres == ["Horror"]


def test_comment_wrapped_payload_is_accepted():
    html = html_page(json_ld='/* <![CDATA[ */ {"@type": "Movie", "genre": ["Horror"]} /* ]]> */').text

    data = parse_json_ld(html, BASE)

    assert data.genres == ["Horror"]


def test_relative_urls_are_resolved_and_bad_values_dropped():
    payload = {"@type": "Movie", "image": "/posters/p.jpg", "url": {"not": "a string"}}
    html = html_page(json_ld=payload).text

    data = parse_json_ld(html, BASE)

    assert data.poster_url == "https://letterboxd.com/posters/p.jpg"
    assert data.movie_url is None


def test_missing_script_returns_none():
    assert parse_json_ld(html_page().text, BASE) is None


def test_malformed_json_raises_from_loader_and_is_absorbed_by_parser():
    html = html_page(json_ld="{not json").text

    with pytest.raises(JsonLdParseError):
        load_json_ld_payload(html)
    assert parse_json_ld(html, BASE) is None


def test_rating_value_shapes():
    assert extract_rating_value({"ratingValue": 4.0}) == "4"
    assert extract_rating_value({"ratingValue": 3.87}) == "3.87"
    assert extract_rating_value({"ratingValue": " 4.1 "}) == "4.1"
    assert extract_rating_value({"ratingValue": True}) is None
    assert extract_rating_value("4.0") is None
