"""Tests for keyword-based ministry classification."""

from __future__ import annotations

import pytest

from bcn_presupuesto.transformer.ministry import (
    DEFAULT_CODE,
    DEFAULT_NAME,
    MINISTRY_KEYWORDS,
    classify,
    extract_ministry_code,
    extract_ministry_name,
)

# =============================================================================
# Tests for extract_ministry_code
# =============================================================================


class TestExtractMinistryCode:
    """Uppercase substring match against the ordered keyword table."""

    @pytest.mark.parametrize(
        ("partida", "expected"),
        [
            ("Ministerio de Educación", "MINEDUC"),
            ("MINISTERIO DE EDUCACION", "MINEDUC"),
            ("Ministerio de Salud", "MINSAL"),
            ("Ministerio del Interior y Seguridad Pública", "INTERIOR"),
            ("Ministerio de Desarrollo Social y Familia", "MDS"),
            ("Ministerio de Defensa Nacional", "DEFENSA"),
            ("Ministerio de Obras Públicas", "MOP"),
            ("Ministerio de Justicia y Derechos Humanos", "JUSTICIA"),
            ("Ministerio del Trabajo y Previsión Social", "TRABAJO"),
            ("Ministerio de Hacienda", "HACIENDA"),
            ("Ministerio de Relaciones Exteriores", "RREE"),
            ("Ministerio de Economía, Fomento y Turismo", "ECONOMIA"),
            ("Ministerio de Agricultura", "AGRICULTURA"),
            ("Ministerio de Minería", "MINERIA"),
            ("Ministerio de Transportes y Telecomunicaciones", "MTT"),
            ("Ministerio de Vivienda y Urbanismo", "MINVU"),
            ("Ministerio del Medio Ambiente", "MMA"),
            ("Ministerio de Energía", "ENERGIA"),
            ("Ministerio de las Culturas, las Artes y el Patrimonio", "CULTURAS"),
            ("Ministerio de Ciencia, Tecnología, Conocimiento e Innovación", "CIENCIA"),
            ("Ministerio de Bienes Nacionales", "BIENES"),
            ("Ministerio de la Mujer y la Equidad de Género", "MUJER"),
            ("Ministerio del Deporte", "DEPORTE"),
            ("Presidencia de la República", "SEGPRES"),
            ("Ministerio Secretaría General de Gobierno", "SEGGOB"),
        ],
    )
    def test_known_ministries(self, partida: str, expected: str) -> None:
        assert extract_ministry_code(partida) == expected

    def test_declaration_order_breaks_ties(self) -> None:
        """A name with two keywords takes the code declared first."""
        assert extract_ministry_code("Ministerio de Economía y Energía") == "ECONOMIA"
        assert extract_ministry_code("Ministerio de Salud y Educación") == "MINEDUC"

    def test_unmatched_is_otros(self) -> None:
        assert extract_ministry_code("Congreso Nacional") == DEFAULT_CODE
        assert extract_ministry_code("") == DEFAULT_CODE

    def test_accented_and_plain_keywords_share_codes(self) -> None:
        codes = dict(MINISTRY_KEYWORDS)
        assert codes["EDUCACIÓN"] == codes["EDUCACION"]
        assert codes["ECONOMÍA"] == codes["ECONOMIA"]
        assert codes["MINERÍA"] == codes["MINERIA"]
        assert codes["ENERGÍA"] == codes["ENERGIA"]


# =============================================================================
# Tests for extract_ministry_name
# =============================================================================


class TestExtractMinistryName:
    def test_ministerio_de(self) -> None:
        assert extract_ministry_name("Ministerio de Salud") == "Ministerio de Salud"

    def test_stops_at_comma(self) -> None:
        assert extract_ministry_name("Ministerio de Economía, Fomento y Turismo") == "Ministerio de Economía"

    def test_stops_at_dash(self) -> None:
        assert extract_ministry_name("Ministerio de Salud - Subsecretaría") == "Ministerio de Salud"

    def test_ministerio_del(self) -> None:
        name = extract_ministry_name("Ministerio del Interior y Seguridad Pública")
        assert name == "Ministerio de Interior y Seguridad Pública"

    def test_secretaria_general(self) -> None:
        assert extract_ministry_name("Secretaría General de Gobierno") == "Ministerio de Gobierno"

    def test_plain_label_uses_text_before_dash(self) -> None:
        assert extract_ministry_name("Presidencia de la República - Gabinete") == "Presidencia de la República"

    def test_case_insensitive(self) -> None:
        assert extract_ministry_name("MINISTERIO DE HACIENDA") == "Ministerio de HACIENDA"


# =============================================================================
# Tests for classify
# =============================================================================


class TestClassify:
    def test_known_ministry(self) -> None:
        assert classify("Ministerio de Educación") == ("MINEDUC", "Ministerio de Educación")

    def test_otros_uses_default_name(self) -> None:
        assert classify("Congreso Nacional") == (DEFAULT_CODE, DEFAULT_NAME)
        assert DEFAULT_NAME == "Otros Servicios Públicos"

    def test_is_deterministic(self) -> None:
        label = "Ministerio de Vivienda y Urbanismo"
        assert {classify(label) for _ in range(5)} == {("MINVU", "Ministerio de Vivienda y Urbanismo")}

    def test_is_total(self) -> None:
        """Every input yields a non-empty code and name."""
        for label in ["", "-", "   ", "123", "Partida 50 - Tesoro Público"]:
            code, name = classify(label)
            assert code
            assert name
