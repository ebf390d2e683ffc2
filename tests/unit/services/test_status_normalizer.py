"""Unit tests for status normalization"""

import pytest
from src.app.services.status_normalizer import (
    extract_code,
    extract_raw_status,
    is_processed,
    normalize,
)
from src.domain.normalized_status import NormalizedStatus


class TestNormalize:
    """Decision table, first matching row wins"""

    @pytest.mark.parametrize("code", [0, 1, "0", "1"])
    def test_processed_success_codes_are_approved(self, code):
        payload = {"procesado": True, "codigo": code, "estado": "RECHAZADA"}

        assert normalize("RECHAZADA", payload) == NormalizedStatus.APPROVED

    def test_processed_error_code_uses_code_table(self):
        payload = {"procesado": True, "codigo": 109, "mensaje": "NCF vencido"}

        assert normalize("NCF vencido", payload) == NormalizedStatus.EXPIRED_NCF

    def test_processed_unmapped_code_is_error(self):
        assert normalize("", {"procesado": True, "codigo": 999}) == NormalizedStatus.ERROR

    def test_keyword_wins_over_code_when_not_processed(self):
        payload = {"procesado": False, "codigo": 999, "estado": "Rechazada"}

        assert normalize("Rechazada", payload) == NormalizedStatus.REJECTED

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("OK", NormalizedStatus.APPROVED),
            ("Aceptado", NormalizedStatus.APPROVED),
            ("En proceso", NormalizedStatus.IN_PROGRESS),
            ("NCF usado", NormalizedStatus.INVALID_NCF),
            ("RNC_NO_AUTORIZADO", NormalizedStatus.UNAUTHORIZED_TAXID),
            ("Anulada", NormalizedStatus.VOIDED),
        ],
    )
    def test_keyword_groups(self, text, expected):
        assert normalize(text, {"estado": text}) == expected

    def test_code_table_when_no_keyword_matches(self):
        assert normalize("Documento no encontrado", {"codigo": 120}) == NormalizedStatus.NOT_FOUND

    def test_unmapped_code_is_error(self):
        assert normalize("", {"codigo": 999}) == NormalizedStatus.ERROR

    def test_nothing_to_go_on_is_unknown(self):
        assert normalize(None, {}) == NormalizedStatus.UNKNOWN
        assert normalize("texto libre", None) == NormalizedStatus.UNKNOWN


class TestPayloadHelpers:

    @pytest.mark.parametrize(
        "value, expected",
        [(0, 0), ("108", 108), (" 2 ", 2), (1.0, 1), ("abc", None), (None, None), (True, None)],
    )
    def test_extract_code(self, value, expected):
        assert extract_code({"codigo": value}) == expected

    def test_is_processed(self):
        assert is_processed({"procesado": True})
        assert is_processed({"procesado": "true"})
        assert not is_processed({"procesado": "false"})
        assert not is_processed({})

    def test_extract_raw_status_precedence(self):
        assert extract_raw_status({"estado": "A", "status": "B", "mensaje": "C"}) == "A"
        assert extract_raw_status({"status": "B", "mensaje": "C"}) == "B"
        assert extract_raw_status({"mensaje": "C"}) == "C"
        assert extract_raw_status({}) == ""
