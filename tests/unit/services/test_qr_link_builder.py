"""Unit tests for DGII verification links and formatting helpers"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

from src.app.services.formatting import format_amount, format_dgii_date, parse_amount
from src.app.services.qr_link_builder import (
    DEFAULT_QR_URL,
    DEFAULT_QR_URL_FINAL_CONSUMER,
    QRLinkBuilder,
)
from src.domain.simplified_invoice import SimplifiedInvoice


def split(url):
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}", parse_qsl(parts.query)


@pytest.fixture
def builder():
    return QRLinkBuilder()


class TestQRLinkBuilder:

    def test_full_parameter_set_in_order(self, builder):
        url = builder.build(
            document_type="31",
            issuer_tax_id="130862346",
            document_number="E310000000001",
            total="1,180",
            security_code="A1b2C3",
            buyer_tax_id="101010101",
            issue_date="2025-06-01",
            signature_date="01-06-2025 10:20:30",
        )

        base, params = split(url)
        assert base == DEFAULT_QR_URL
        assert params == [
            ("RncEmisor", "130862346"),
            ("RncComprador", "101010101"),
            ("ENCF", "E310000000001"),
            ("FechaEmision", "01-06-2025"),
            ("MontoTotal", "1180.00"),
            ("FechaFirma", "01-06-2025 10:20:30"),
            ("CodigoSeguridad", "A1b2C3"),
        ]

    def test_final_consumer_reduced_parameter_set(self, builder):
        url = builder.build(
            document_type="32",
            issuer_tax_id="130862346",
            document_number="E320000000001",
            total=Decimal("250.5"),
            security_code="XyZ123",
            buyer_tax_id="101010101",
            issue_date="2025-06-01",
        )

        base, params = split(url)
        assert base == DEFAULT_QR_URL_FINAL_CONSUMER
        assert params == [
            ("RncEmisor", "130862346"),
            ("ENCF", "E320000000001"),
            ("MontoTotal", "250.50"),
            ("CodigoSeguridad", "XyZ123"),
        ]

    def test_signature_date_falls_back_to_issue_date(self, builder):
        url = builder.build("31", "130862346", "E310000000001", 10, "abc", "101010101", issue_date=date(2025, 6, 1))

        params = dict(split(url)[1])
        assert params["FechaFirma"] == "01-06-2025"

    def test_build_verification_url_uses_canonical_total(self, builder):
        invoice = SimplifiedInvoice.model_validate(
            {
                "emisor": {"rnc": "130862346"},
                "comprador": {"rnc": "101010101"},
                "factura": {"tipo": "31", "ncf": "E310000000001", "total": "1000", "fecha": "2025-06-01"},
            }
        )
        submission = {"codigoSeguridad": "A1b2C3", "fechaFirma": "2025-06-01T10:20:30"}

        url = builder.build_verification_url(submission, invoice, total="900.00")

        params = dict(split(url)[1])
        assert params["MontoTotal"] == "900.00"
        assert params["FechaFirma"] == "01-06-2025 10:20:30"
        assert params["CodigoSeguridad"] == "A1b2C3"

    def test_custom_endpoints(self):
        builder = QRLinkBuilder(base_url="https://test/ct", final_consumer_url="https://test/fc")

        assert builder.build("32", "1", "E320000000001", 1, "c").startswith("https://test/fc?")
        assert builder.build("33", "1", "E330000000001", 1, "c").startswith("https://test/ct?")


class TestFormatting:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2025-06-01", "01-06-2025"),
            ("01-06-2025", "01-06-2025"),
            ("01-06-2025 10:20:30", "01-06-2025"),
            (date(2025, 6, 1), "01-06-2025"),
            (None, ""),
            ("junio", "junio"),
        ],
    )
    def test_format_dgii_date(self, value, expected):
        assert format_dgii_date(value) == expected

    def test_format_dgii_date_keeps_time(self):
        assert format_dgii_date("2025-06-01T10:20:30.123Z", keep_time=True) == "01-06-2025 10:20:30"
        assert format_dgii_date(datetime(2025, 6, 1, 8, 5, 0), keep_time=True) == "01-06-2025 08:05:00"

    def test_format_amount_rounds_half_up(self):
        assert format_amount("2.345") == "2.35"
        assert format_amount(None) == "0.00"
        assert format_amount("1,234.5") == "1234.50"

    @pytest.mark.parametrize(
        "value, expected",
        [("1,180.00", Decimal("1180.00")), (12, Decimal("12")), ("", Decimal("0")), (None, Decimal("0")),
         ("abc", None), ("NaN", None), (True, None)],
    )
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected
