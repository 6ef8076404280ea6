from lab_etl.transform.csv_reader import parse_csv


class TestParseCsv:
    def test_parses_headers_and_rows_in_order(self) -> None:
        parsed = parse_csv(b"Case ID,Product ID\n1,A\n2,B\n")

        assert parsed.headers == ["Case ID", "Product ID"]
        assert parsed.rows == [
            {"Case ID": "1", "Product ID": "A"},
            {"Case ID": "2", "Product ID": "B"},
        ]

    def test_strips_utf8_bom(self) -> None:
        parsed = parse_csv("\ufeffCase ID\n1\n".encode())

        assert parsed.headers == ["Case ID"]

    def test_quoted_newlines_stay_in_one_record(self) -> None:
        parsed = parse_csv(b'Case ID,Notes\n1,"line one\nline two"\n')

        assert len(parsed.rows) == 1
        assert parsed.rows[0]["Notes"] == "line one\nline two"

    def test_short_row_gets_empty_strings(self) -> None:
        parsed = parse_csv(b"a,b,c\n1\n")

        assert parsed.rows == [{"a": "1", "b": "", "c": ""}]

    def test_long_row_drops_surplus_cells(self) -> None:
        parsed = parse_csv(b"a,b\n1,2,3,4\n")

        assert parsed.rows == [{"a": "1", "b": "2"}]

    def test_header_only_file_has_no_rows(self) -> None:
        parsed = parse_csv(b"a,b\n")

        assert parsed.headers == ["a", "b"]
        assert parsed.rows == []

    def test_empty_payload(self) -> None:
        parsed = parse_csv(b"")

        assert parsed.headers == []
        assert parsed.rows == []

    def test_repeated_header_keeps_every_cell_in_records(self) -> None:
        parsed = parse_csv(b"Notes,Notes\nfirst,second\n")

        assert parsed.headers == ["Notes", "Notes"]
        assert parsed.records == [["first", "second"]]
        assert parsed.rows == [{"Notes": "second"}]

    def test_blank_lines_are_skipped(self) -> None:
        parsed = parse_csv(b"a,b\n1,2\n\n3,4\n")

        assert parsed.records == [["1", "2"], ["3", "4"]]
