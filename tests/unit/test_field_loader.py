"""
Unit tests for field TSV loading.
"""
import pytest

from champsim.exceptions import ValidationError
from champsim.extract.field_loader import load_field, write_field


def test_load_field(field_tsv, roster_16):
    roster = load_field(field_tsv)
    assert roster == roster_16


def test_load_field_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_field(tmp_path / "nope.tsv")


def test_load_field_tolerates_padded_headers(tmp_path):
    path = tmp_path / "field.tsv"
    path.write_text("name \t seed\trating\trd \nAnn\t2\t1600\t40\nBo\t1\t1700\t35\n")
    roster = load_field(path)
    assert [c.name for c in roster] == ["Bo", "Ann"]
    assert roster[0].rating == 1700.0


def test_load_field_missing_column(tmp_path):
    path = tmp_path / "field.tsv"
    path.write_text("name\tseed\trating\nAnn\t1\t1600\n")
    with pytest.raises(ValidationError):
        load_field(path)


def test_write_then_load(tmp_path, roster_24):
    path = tmp_path / "out" / "field.tsv"
    write_field(roster_24, path)
    assert path.read_text().splitlines()[0] == "name\tseed\trating\trd"
    assert load_field(path) == roster_24
