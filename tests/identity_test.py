"""Identity keys: canonical form, idempotence, case preservation."""

import unicodedata

import pytest

from src.identity import canonicalize, directory_of, last_segment, segments, split_extension


@pytest.mark.parametrize(
    "path",
    [
        "Foo/Bar.JPG",
        "CONCURSANTES\\Ana\\foto.jpg",
        "a/b/c.tiff",
        "  spaced name/x.png",
        unicodedata.normalize("NFD", "Concurso/José/Niño.jpg"),
    ],
)
def test_canonicalize_idempotent(path):
    """Canonicalizing twice gives the same key as canonicalizing once."""
    once = canonicalize(path)
    assert canonicalize(once) == once


def test_canonicalize_preserves_case():
    """Keys are not lower-cased."""
    assert canonicalize("Foo/Bar.JPG") == "Foo/Bar.JPG"
    assert canonicalize("Foo/Bar.JPG") != canonicalize("foo/bar.jpg")


def test_canonicalize_separators_and_nfc():
    """Backslashes become slashes and decomposed accents are composed."""
    decomposed = unicodedata.normalize("NFD", "Concurso\\José\\a.jpg")
    assert canonicalize(decomposed) == "Concurso/José/a.jpg"


def test_path_helpers():
    """Segment, directory and extension helpers."""
    key = "CONCURSANTES/Ana/photo.TIFF"
    assert segments(key) == ["CONCURSANTES", "Ana", "photo.TIFF"]
    assert last_segment(key) == "photo.TIFF"
    assert directory_of(key) == "CONCURSANTES/Ana/"
    assert directory_of("top.jpg") == ""
    assert split_extension("photo.TIFF") == ("photo", "tiff")
    assert split_extension("README") == ("README", "")
    assert split_extension(".hidden") == (".hidden", "")
