import hashlib
import itertools
import re

import pytest

from mandate_intake.identity import derive, is_identifier, normalized_identity

UUID_SHAPE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$')

# sha256("dupont_marie_1980-05-12"), first 32 hex digits, grouped 8-4-4-4-12
DUPONT_MARIE = "da5bac51-412c-7931-6378-5391bb851f8a"


def test_known_identifier_fixture():
    assert derive("Dupont", "Marie", "1980-05-12") == DUPONT_MARIE


def test_fixture_matches_sha256_of_normalized_string():
    digest = hashlib.sha256(b"dupont_marie_1980-05-12").hexdigest()[:32]
    assert derive("Dupont", "Marie", "1980-05-12").replace("-", "") == digest


def test_deterministic():
    assert derive("Tremblay", "Luc", "1975-11-02") == derive("Tremblay", "Luc", "1975-11-02")


@pytest.mark.parametrize("last,first", [
    ("Smith", " john "),
    ("  SMITH", "John"),
    ("smith\t", "\nJOHN"),
])
def test_name_case_and_whitespace_ignored(last, first):
    assert derive(last, first, "1990-01-01") == derive("smith", "john", "1990-01-01")


def test_date_is_used_verbatim():
    # Whitespace and format in the date are significant
    assert derive("smith", "john", "1990-01-01") != derive("smith", "john", " 1990-01-01")
    assert derive("smith", "john", "1990-01-01") != derive("smith", "john", "01/01/1990")


def test_normalized_string():
    assert normalized_identity(" Dupont ", "MARIE", "1980-05-12") == "dupont_marie_1980-05-12"


def test_changing_any_field_changes_identifier():
    lasts = ["Dupont", "Durand", "Martin"]
    firsts = ["Marie", "Jean", "Sophie"]
    dates = ["1980-05-12", "1980-05-13", "1999-12-31"]
    ids = [derive(l, f, d) for l, f, d in itertools.product(lasts, firsts, dates)]
    assert len(set(ids)) == len(ids)


def test_empty_inputs_still_produce_identifier():
    ident = derive("", "", "")
    assert ident == "9911f4d2-b184-57c4-7266-64d309385072"
    assert UUID_SHAPE.match(ident)


@pytest.mark.parametrize("args", [
    ("Dupont", "Marie", "1980-05-12"),
    ("Ñúñez", "José", "n/a"),
    ("O'Brien", "Seán", ""),
    ("x" * 500, "y", "2000-02-30"),
])
def test_identifier_format(args):
    ident = derive(*args)
    assert len(ident) == 36
    assert UUID_SHAPE.match(ident)
    assert [len(g) for g in ident.split("-")] == [8, 4, 4, 4, 12]


def test_is_identifier():
    assert is_identifier(DUPONT_MARIE)
    assert not is_identifier(DUPONT_MARIE.upper())
    assert not is_identifier(DUPONT_MARIE.replace("-", ""))
    assert not is_identifier("not-an-identifier")
    assert not is_identifier(None)
