from pathlib import Path

import pytest

from xy_explorer.csv_processor import (
    Delimiter,
    FileAccessError,
    describe_table,
    parse_decimal,
    parse_raw_table,
    read_text_file,
)


def test_parse_simple_comma_table():
    table = parse_raw_table("x,y\n1,2\n2,4\n3,6\n")
    assert table is not None
    assert table.header == ("x", "y")
    assert table.rows == (("1", "2"), ("2", "4"), ("3", "6"))
    assert table.metadata == ()
    assert table.delimiter is Delimiter.COMMA
    assert table.column_count == 2
    assert table.row_count == 3


def test_parse_whitespace_table_with_preamble():
    text = (
        "Hubble (1929), distances and velocities\n"
        "Units: Mpc and km/s per second\n"
        "distance   velocity\n"
        "0.032\t170\n"
        "0.034  290\n"
    )
    table = parse_raw_table(text)
    assert table is not None
    assert table.delimiter is Delimiter.WHITESPACE
    assert table.header == ("distance", "velocity")
    assert table.metadata == (
        "Hubble (1929), distances and velocities",
        "Units: Mpc and km/s per second",
    )
    assert table.rows == (("0.032", "170"), ("0.034", "290"))


def test_rows_with_wrong_cell_count_are_skipped():
    table = parse_raw_table("a,b,c\n1,2,3\n4,5\n6,7,8\n9,10,11,12\n")
    assert table is not None
    assert table.rows == (("1", "2", "3"), ("6", "7", "8"))
    assert table.skipped_lines == 2
    assert all(len(r) == table.column_count for r in table.rows)


def test_header_delimiter_applies_to_all_data_lines():
    # Whitespace rows under a comma header have one cell each and are dropped
    table = parse_raw_table("x,y\n1,2\n3 4\n5,6\n")
    assert table is not None
    assert table.rows == (("1", "2"), ("5", "6"))
    assert table.skipped_lines == 1


def test_malformed_first_row_does_not_steal_header():
    table = parse_raw_table("x,y\na,b\n1,2\n3,4\n")
    assert table is not None
    assert table.header == ("x", "y")
    assert table.rows[0] == ("a", "b")


def test_comment_lines_are_metadata_anywhere():
    table = parse_raw_table("# source: test\nx,y\n1,2\n# trailing note\n3,4\n")
    assert table is not None
    assert table.header == ("x", "y")
    assert table.metadata == ("# source: test", "# trailing note")
    assert table.row_count == 2


def test_quoted_cells_and_blank_lines():
    table = parse_raw_table('"Year", "Anomaly"\n\n"1990", "0.45"\n\n1991,0.41\n')
    assert table is not None
    assert table.header == ("Year", "Anomaly")
    assert table.rows == (("1990", "0.45"), ("1991", "0.41"))


def test_header_only_and_empty_inputs():
    only_header = parse_raw_table("x,y\n")
    assert only_header is not None
    assert only_header.header == ("x", "y")
    assert only_header.row_count == 0

    assert parse_raw_table("") is None
    assert parse_raw_table("\n  \n\t\n") is None
    assert parse_raw_table("# only\n# comments\n") is None


@pytest.mark.parametrize(
    "cell,expected",
    [
        ("1", 1.0),
        ("-2.5", -2.5),
        ("+3.", 3.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("6.02E-23", 6.02e-23),
        ("  42  ", 42.0),
    ],
)
def test_parse_decimal_accepts_literals(cell, expected):
    assert parse_decimal(cell) == pytest.approx(expected)


@pytest.mark.parametrize(
    "cell", ["", "a", "nan", "inf", "-Infinity", "1_000", "1,5", "0x10", "1e", ".", "1e999"]
)
def test_parse_decimal_rejects_non_literals(cell):
    assert parse_decimal(cell) is None


def test_to_frame_is_string_typed_with_unique_columns():
    table = parse_raw_table("v,v,w\n1,2,3\n")
    df = table.to_frame()
    assert list(df.columns) == ["v", "v.1", "w"]
    assert df.iloc[0].tolist() == ["1", "2", "3"]


def test_read_text_file_utf8_and_bom(tmp_path: Path):
    p = tmp_path / "data.csv"
    p.write_bytes("\ufeffx,y\n1,2\n".encode("utf-8"))
    text = read_text_file(p)
    assert text.startswith("x,y")
    assert parse_raw_table(text).header == ("x", "y")


def test_read_text_file_errors(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_text_file(tmp_path / "missing.csv")
    with pytest.raises(FileAccessError):
        read_text_file(tmp_path)
    bad = tmp_path / "latin1.csv"
    bad.write_bytes("x,y\n\xe9,1\n".encode("latin-1"))
    with pytest.raises(FileAccessError):
        read_text_file(bad)


def test_describe_table_placeholders():
    assert describe_table(None) == "No header | Rows: -"
    assert "Rows: 3" in describe_table(parse_raw_table("x,y\n1,2\n2,4\n3,6\n"))


def test_command_line_prints_table(tmp_path: Path, monkeypatch, capsys):
    from xy_explorer import csv_processor

    p = tmp_path / "t.txt"
    p.write_text("% units: s, m\ntime dist\n0 0\n1 4.9\n", encoding="utf-8")
    monkeypatch.setattr("sys.argv", ["csv_processor", str(p), "--rows", "1"])
    csv_processor.main()
    out = capsys.readouterr().out
    assert "Columns: time, dist | Rows: 2" in out
    assert "meta: % units: s, m" in out


def test_command_line_missing_file_exits(tmp_path: Path, monkeypatch):
    from xy_explorer import csv_processor

    monkeypatch.setattr("sys.argv", ["csv_processor", str(tmp_path / "nope.csv")])
    with pytest.raises(SystemExit) as exc:
        csv_processor.main()
    assert exc.value.code == 1


def test_quoted_cells_may_contain_the_delimiter():
    table = parse_raw_table('name,x,y\n"Smith, J",1,2\n"Doe, A",2,4\nplain,3,6\n')
    assert table is not None
    assert table.header == ("name", "x", "y")
    assert table.metadata == ()
    assert table.rows == (
        ("Smith, J", "1", "2"),
        ("Doe, A", "2", "4"),
        ("plain", "3", "6"),
    )
    assert table.skipped_lines == 0


def test_quoted_whitespace_cells_stay_whole():
    table = parse_raw_table('city  temp\n"New York"  12.5\n"Los Angeles"\t18\n')
    assert table.delimiter is Delimiter.WHITESPACE
    assert table.rows == (("New York", "12.5"), ("Los Angeles", "18"))


def test_constant_non_integer_column_parses_for_statistics():
    from xy_explorer.stats import compute_statistics, to_points

    table = parse_raw_table("x,y\n0.1,1\n0.1,5\n0.1,9\n")
    stats = compute_statistics(to_points(0, 1, table))
    assert stats.std_x == 0.0
    assert stats.slope is None
    assert stats.correlation is None
