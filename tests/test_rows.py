import pytest

from boxdsync.workflows.rows import CsvFormatError, SourceRow, parse_rows, validate_csv

DIARY = (
    "Date,Name,Year,Letterboxd URI,Rating,Rewatch,Tags,Watched Date\n"
    '2024-01-03,The Thing,1982,https://boxd.it/abcd,4.5,Yes,"horror, rewatch",2024-01-02\n'
    '2024-01-04,"Crouching Tiger, Hidden Dragon",2000,https://boxd.it/efgh,4,,,2024-01-04\n'
    '2024-01-05,"The ""Best"" Film",1999,https://boxd.it/ijkl,,,,\n'
)


def test_parse_rows_handles_quoting():
    rows = parse_rows(DIARY)

    assert [row.title for row in rows] == [
        "The Thing",
        "Crouching Tiger, Hidden Dragon",
        'The "Best" Film',
    ]
    first = rows[0]
    assert first.year == "1982"
    assert first.uri == "https://boxd.it/abcd"
    assert first.rating == "4.5"
    assert first.is_rewatch is True
    assert first.tag_list == ["horror", "rewatch"]
    assert first.watched_date == "2024-01-02"
    assert rows[1].is_rewatch is False


def test_parse_rows_strips_bom_and_blank_lines():
    content = "\ufeffDate,Name,Year,Letterboxd URI\n\n2024-01-01, Alien ,1979, https://letterboxd.com/film/alien/ \n\n"

    rows = parse_rows(content)

    assert rows == [SourceRow(date="2024-01-01", title="Alien", year="1979", uri="https://letterboxd.com/film/alien/")]


def test_parse_rows_skips_rows_without_title():
    content = "Date,Name,Year,Letterboxd URI\n2024-01-01,,1979,https://boxd.it/x\n2024-01-02,Alien,1979,https://boxd.it/y\n"

    assert [row.title for row in parse_rows(content)] == ["Alien"]


def test_parse_rows_rejects_missing_columns():
    with pytest.raises(CsvFormatError) as excinfo:
        parse_rows("Date,Name,Letterboxd URI\n2024-01-01,Alien,https://boxd.it/y\n")

    assert excinfo.value.missing == ("Year",)
    assert "Year" in str(excinfo.value)


def test_parse_rows_rejects_empty_input():
    with pytest.raises(CsvFormatError, match="empty"):
        parse_rows("")


def test_validate_csv_counts_movies():
    result = validate_csv(DIARY)

    assert result.valid is True
    assert result.movie_count == 3
    assert result.message == "Found 3 movies"


def test_validate_csv_reports_missing_year():
    result = validate_csv("Date,Name,Letterboxd URI\n2024-01-01,Alien,https://boxd.it/y\n")

    assert result.valid is False
    assert result.movie_count == 0
    assert "Year" in result.message
    assert result.missing_columns == ("Year",)


def test_validate_csv_requires_a_date_column():
    result = validate_csv("Name,Year,Letterboxd URI\nAlien,1979,https://boxd.it/y\n")

    assert result.valid is False
    assert result.missing_columns == ("Date or Watched Date",)


def test_watchlist_header_without_watched_date_is_valid():
    result = validate_csv("Date,Name,Year,Letterboxd URI\n2024-02-01,Heat,1995,https://boxd.it/z\n")

    assert result.valid is True
    assert result.movie_count == 1


def test_identity_key_is_title_and_year():
    row = SourceRow(date="", title="Heat", year="1995", uri="")

    assert row.identity_key == ("Heat", "1995")


def test_parse_rows_reports_broken_quoting_as_format_error():
    content = "Date,Name,Year,Letterboxd URI\n2024-01-01,\"" + "x" * 200_000 + "\n"

    with pytest.raises(CsvFormatError, match="Unreadable CSV"):
        parse_rows(content)
    assert validate_csv(content).valid is False
