import pytest

from histoglobe.processing.temporal import (
    century_to_roman,
    extract_century_year,
    extract_year,
    format_century_label,
    strip_date_prefix,
)


@pytest.mark.parametrize("text, expected", [
    ("Alésia fut assiégée en 52 av. J.-C. par César.", -52),
    ("Fondée vers 600 avant J.-C. par des Grecs.", -600),
    ("Bataille livrée en 300 av JC.", -300),
])
def test_bce_year_is_negated(text, expected):
    assert extract_year(text) == expected


def test_bce_wins_over_explicit_years():
    assert extract_year("Ville fondée en 1200 sur un site occupé dès 800 av. J.-C.") == -800


def test_earliest_explicit_year_wins():
    assert extract_year("Reconstruite en 1875 après l'incendie de 1871.") == 1871


def test_years_out_of_range_are_ignored():
    assert extract_year("Une population de 50 000 habitants en 2031 et 99 maisons.") is None


def test_explicit_year_dominates_century():
    text = "Abbaye du XIIe siècle, théâtre d'un massacre en 1562."
    assert extract_year(text) == 1562


@pytest.mark.parametrize("text, expected", [
    ("Église construite au XIIe siècle.", 1150),
    ("Château du XVIe siècle.", 1550),
    ("Un temple du IIIe siècle av. J.-C.", -250),
    ("Une villa du 5e siècle.", 450),
    ("Une ferme du 18ème siècle.", 1750),
])
def test_century_midpoint(text, expected):
    assert extract_year(text) == expected


def test_arabic_century_out_of_range():
    assert extract_century_year("Au 25e siècle peut-être.") is None


def test_no_date_returns_none():
    assert extract_year("Une rivière tranquille.") is None
    assert extract_year("") is None


@pytest.mark.parametrize("text, expected", [
    ("Chapelle du XVIe siècle", "XVIe"),
    ("Temple du IIIe siècle av. J.-C.", "IIIe av. J.-C."),
    ("Ferme du 16e siècle", "XVIe"),
    ("Rien à signaler", None),
])
def test_format_century_label(text, expected):
    assert format_century_label(text) == expected


def test_century_to_roman():
    assert century_to_roman(19) == "XIX"
    assert century_to_roman(22) is None


@pytest.mark.parametrize("title, expected", [
    ("(1942) Rafle du Vel d'Hiv", "Rafle du Vel d'Hiv"),
    ("(52 av. J.-C.) Siège d'Alésia", "Siège d'Alésia"),
    ("(XVIe) Château de Chambord", "Château de Chambord"),
    ("(IIIe av. J.-C.) Oppidum", "Oppidum"),
    ("Traité de Paris", "Traité de Paris"),
])
def test_strip_date_prefix(title, expected):
    assert strip_date_prefix(title) == expected
