"""
Tests for core/files module
"""

import pytest

from studycast.core.files import sanitize_filename


@pytest.mark.parametrize("name, expected", [
    ("La Critica della Ragion Pura / Kant", "La_Critica_della_Ragion_Pura_Kant"),
    ("Perché l'età è così", "Perche_l'eta_e_cosi"),
    ("a:b*c?d", "a_b_c_d"),
    ("  spazi   multipli  ", "spazi_multipli"),
    ("../..", "untitled"),
    ("", "untitled"),
    (".nascosto", "nascosto"),
])
def test_sanitize_filename(name, expected):
    assert sanitize_filename(name) == expected


def test_custom_fallback_and_length():
    assert sanitize_filename("???", fallback="project") == "project"
    assert len(sanitize_filename("x" * 200, max_length=10)) == 10
