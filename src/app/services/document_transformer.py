"""Document transformer

Turns a SimplifiedInvoice into the canonical document accepted by the
certification service. Per-type structure comes from DOCUMENT_TYPE_RULES;
this module only knows how to build each block.

Money is handled in Decimal and rounded half-up to two decimals. When a
discount applies it is spread over every line so the emitted lines always add
up to the emitted total.
"""

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from src.app.services.formatting import format_dgii_date, parse_amount, quantize
from src.domain.document_type import DocumentType, DocumentTypeRule, TotalsLayout, get_rule
from src.domain.simplified_invoice import (
    Buyer,
    Discount,
    InvoiceHeader,
    Issuer,
    LineItem,
    SimplifiedInvoice,
)

logger = logging.getLogger(__name__)

ITBIS_RATE = Decimal("0.18")
ITBIS_RATE_LABEL = "18"
TOTAL_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")

TAXABLE_INDICATOR = "1"
EXEMPT_INDICATOR = "4"

_DMY = re.compile(r"^\d{2}-\d{2}-\d{4}$")
_YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class InvoiceValidationError(Exception):
    """The simplified invoice cannot be transformed; ``errors`` lists every problem found"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid invoice: " + "; ".join(self.errors))


def _money(value: Decimal) -> str:
    return str(quantize(value))


def _money_or_none(value: Decimal) -> Optional[str]:
    return _money(value) if value > 0 else None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def strip_modification_code(code: Any) -> str:
    """Codes like "01" are sent as "1"; an all-zero code becomes "0" """
    text = str(code).strip().lstrip("0")
    return text or "0"


def sequence_expiration(value: Optional[str], today: date) -> str:
    """
    FechaVencimientoSecuencia in DD-MM-YYYY

    Falls back to the 31st of December of the current year (next year when
    already in December) when the value is missing or unreadable.
    """
    text = (value or "").strip()
    if _DMY.match(text):
        return text
    match = _YMD.match(text)
    if match:
        year, month, day = match.groups()
        return f"{day}-{month}-{year}"

    year = today.year + 1 if today.month == 12 else today.year
    fallback = f"31-12-{year}"
    if text:
        logger.warning(f"Unrecognized sequence expiration '{text}', using {fallback}")
    else:
        logger.info(f"No sequence expiration given, using {fallback}")
    return fallback


def document_total(document: Dict[str, Any]) -> Optional[str]:
    """MontoTotal of a canonical document, whatever its totals layout"""
    totals = document.get("DocumentoElectronico", {}).get("Encabezado", {}).get("Totales", {})
    return totals.get("montoTotal") or totals.get("MontoTotal")


class _Line:
    __slots__ = ("item", "amount", "taxable")

    def __init__(self, item: LineItem, amount: Decimal, taxable: bool):
        self.item = item
        self.amount = amount
        self.taxable = taxable


class DocumentTransformer:
    """
    Builds canonical documents from simplified invoices

    transform() validates the whole invoice first and raises a single
    InvoiceValidationError carrying every problem.
    """

    def transform(
        self,
        invoice: SimplifiedInvoice,
        token: str,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        today = today or date.today()
        errors: List[str] = []

        document_type = DocumentType.parse(invoice.header.document_type if invoice.header else None)
        header = self._adapt_header(invoice, document_type)
        items = self._adapt_items(invoice, document_type)

        self._validate_parties(invoice, header, document_type, items, errors)
        default_taxable = document_type is not None and get_rule(document_type).default_taxable
        lines = self._parse_lines(items, default_taxable, errors)

        computed = sum((line.amount for line in lines), ZERO)
        grand = self._grand_total(header, computed)

        discount_entries, discount_total = self._collect_discounts(invoice, grand, errors)
        if lines and discount_total > 0 and discount_total >= grand:
            errors.append(
                f"discount total {_money(discount_total)} must be lower than invoice total {_money(grand)}"
            )
        if errors:
            raise InvoiceValidationError(errors)

        rule = get_rule(document_type)
        total = grand - discount_total
        if discount_total > 0:
            self._redistribute(lines, grand, total)

        taxable_total = sum((line.amount for line in lines if line.taxable), ZERO)
        exempt_total = sum((line.amount for line in lines if not line.taxable), ZERO)
        itbis = quantize(taxable_total * ITBIS_RATE)

        encabezado: Dict[str, Any] = {
            "IdentificacionDocumento": self._identification(
                rule, header, taxable_total, total, today
            ),
            "Emisor": self._issuer(rule, invoice.issuer or Issuer(), header),
        }
        if rule.buyer_section:
            encabezado["comprador"] = self._buyer(rule, invoice.buyer or Buyer())
        if rule.extended_parties:
            encabezado["informacionesAdicionales"] = {
                "numeroContenedor": header.container_number,
                "numeroReferencia": header.internal_id,
            }
        encabezado["Totales"] = self._totals(rule, taxable_total, exempt_total, itbis, total)

        body: Dict[str, Any] = {
            "Encabezado": encabezado,
            "DetallesItems": [self._line(rule, index, line) for index, line in enumerate(lines)],
        }
        if discount_entries or rule.always_emit_adjustments:
            body["DescuentosORecargos"] = discount_entries
        if rule.requires_reference:
            body["InformacionReferencia"] = {
                "NCFModificado": header.modified_ncf,
                "FechaNCFModificado": format_dgii_date(header.modified_ncf_date),
                "CodigoModificacion": strip_modification_code(header.modification_code),
                "RazonModificacion": header.modification_reason,
            }

        logger.info(
            f"Transformed {header.ncf} (type {document_type.value}): "
            f"{len(lines)} lines, total {_money(total)}"
        )
        return {"Token": token, "DocumentoElectronico": body}

    # Input adaptation

    def _adapt_header(
        self, invoice: SimplifiedInvoice, document_type: Optional[DocumentType]
    ) -> InvoiceHeader:
        header = invoice.header or InvoiceHeader()
        modification = invoice.modification
        if modification is None or document_type not in (DocumentType.DEBIT_NOTE, DocumentType.CREDIT_NOTE):
            return header

        update = {
            "modified_ncf": modification.modified_ncf,
            "modified_ncf_date": modification.modified_ncf_date,
            "modification_code": modification.modification_code,
            "modification_reason": modification.modification_reason,
        }
        return header.model_copy(update={k: v for k, v in update.items() if v is not None})

    def _adapt_items(
        self, invoice: SimplifiedInvoice, document_type: Optional[DocumentType]
    ) -> List[LineItem]:
        if document_type == DocumentType.CREDIT_NOTE and invoice.returned_items:
            return [
                LineItem(
                    name=returned.name,
                    price=returned.credit_amount if returned.credit_amount is not None else returned.price,
                )
                for returned in invoice.returned_items
            ]
        return list(invoice.items or [])

    # Validation

    def _validate_parties(
        self,
        invoice: SimplifiedInvoice,
        header: InvoiceHeader,
        document_type: Optional[DocumentType],
        items: List[LineItem],
        errors: List[str],
    ) -> None:
        if not (invoice.issuer and _blank_to_none(invoice.issuer.tax_id)):
            errors.append("emisor.rnc is required")
        if not _blank_to_none(header.ncf):
            errors.append("factura.ncf is required")
        if not _blank_to_none(header.document_type):
            errors.append("factura.tipo is required")
        elif document_type is None:
            errors.append(
                f"factura.tipo '{header.document_type}' is not one of {', '.join(DocumentType.codes())}"
            )
        if not items:
            errors.append("items must contain at least one line")

        if document_type != DocumentType.FINAL_CONSUMER:
            if not (invoice.buyer and _blank_to_none(invoice.buyer.tax_id)):
                errors.append("comprador.rnc is required")

        if document_type is not None and get_rule(document_type).requires_reference:
            references = (
                ("ncfModificado", header.modified_ncf),
                ("fechaNCFModificado", header.modified_ncf_date),
                ("codigoModificacion", header.modification_code),
                ("razonModificacion", header.modification_reason),
            )
            for name, value in references:
                if value is None or str(value).strip() == "":
                    errors.append(f"factura.{name} is required for type {document_type.value}")

    def _parse_lines(
        self, items: List[LineItem], default_taxable: bool, errors: List[str]
    ) -> List[_Line]:
        lines = []
        for index, item in enumerate(items):
            amount = parse_amount(item.price)
            if amount is None:
                errors.append(f"items[{index}].precio '{item.price}' is not a valid amount")
                continue
            if amount < 0:
                errors.append(f"items[{index}].precio must not be negative")
                continue
            lines.append(_Line(item, quantize(amount), item.is_taxable(default_taxable)))
        return lines

    # Amounts

    def _grand_total(self, header: InvoiceHeader, computed: Decimal) -> Decimal:
        declared = parse_amount(header.total) if header.total not in (None, "") else None
        if declared is None:
            return computed
        declared = quantize(declared)
        if abs(declared - computed) > TOTAL_TOLERANCE:
            logger.warning(
                f"Declared total {_money(declared)} of {header.ncf} differs from "
                f"items sum {_money(computed)}; using items sum"
            )
            return computed
        return declared

    def _collect_discounts(
        self, invoice: SimplifiedInvoice, grand: Decimal, errors: List[str]
    ) -> Tuple[List[Dict[str, Any]], Decimal]:
        source = invoice.discounts
        if invoice.adjustments is not None and invoice.adjustments.discounts is not None:
            source = invoice.adjustments.discounts
        if source is None:
            return [], ZERO

        if isinstance(source, Discount):
            entry = self._global_discount(source, grand, errors)
            entries = [entry] if entry else []
        else:
            entries = []
            for index, discount in enumerate(source):
                amount = self._discount_amount(discount, f"descuentos[{index}]", errors)
                if amount is None:
                    continue
                entries.append(
                    self._discount_entry(
                        len(entries) + 1,
                        discount,
                        amount,
                        value=_money(amount),
                        value_type="$",
                        default_description="Descuento aplicado",
                    )
                )

        total = sum((Decimal(entry["Monto"]) for entry in entries), ZERO)
        return entries, total

    def _global_discount(
        self, discount: Discount, grand: Decimal, errors: List[str]
    ) -> Optional[Dict[str, Any]]:
        if discount.percentage not in (None, ""):
            percentage = parse_amount(discount.percentage)
            if percentage is None:
                errors.append(f"descuentos.porcentaje '{discount.percentage}' is not a valid amount")
                return None
            if percentage <= 0:
                return None
            amount = quantize(grand * percentage / Decimal("100"))
            return self._discount_entry(
                1, discount, amount, value=_money(percentage), value_type="%",
                default_description="Descuento global",
            )

        amount = self._discount_amount(discount, "descuentos", errors)
        if amount is None:
            return None
        return self._discount_entry(
            1, discount, amount, value=_money(amount), value_type="$",
            default_description="Descuento global",
        )

    def _discount_amount(self, discount: Discount, field: str, errors: List[str]) -> Optional[Decimal]:
        raw = discount.amount if discount.amount not in (None, "") else discount.value
        amount = parse_amount(raw)
        if amount is None:
            errors.append(f"{field}.monto '{raw}' is not a valid amount")
            return None
        if amount <= 0:
            logger.debug(f"Ignoring non-positive discount at {field}")
            return None
        return quantize(amount)

    @staticmethod
    def _discount_entry(
        line_number: int,
        discount: Discount,
        amount: Decimal,
        value: str,
        value_type: str,
        default_description: str,
    ) -> Dict[str, Any]:
        return {
            "NumeroLinea": str(line_number),
            "TipoAjuste": "D",
            "IndicadorFacturacion": discount.billing_indicator or EXEMPT_INDICATOR,
            "Descripcion": discount.description or default_description,
            "TipoValor": value_type,
            "Valor": value,
            "Monto": _money(amount),
        }

    @staticmethod
    def _redistribute(lines: List[_Line], grand: Decimal, total: Decimal) -> None:
        factor = total / grand
        for line in lines:
            line.amount = quantize(line.amount * factor)
        residual = total - sum((line.amount for line in lines), ZERO)
        if not residual or not lines:
            return
        if residual > 0:
            lines[-1].amount += residual
            return
        # Give back the extra cents from the last line, then from the largest lines, never below zero
        remaining = -residual
        donors = [lines[-1]] + sorted(lines[:-1], key=lambda line: line.amount, reverse=True)
        for line in donors:
            taken = min(line.amount, remaining)
            line.amount -= taken
            remaining -= taken
            if not remaining:
                break

    # Blocks

    def _identification(
        self,
        rule: DocumentTypeRule,
        header: InvoiceHeader,
        taxable_total: Decimal,
        total: Decimal,
        today: date,
    ) -> Dict[str, Any]:
        identification: Dict[str, Any] = {
            "TipoDocumento": rule.document_type.value,
            "NCF": header.ncf,
        }
        if rule.requires_expiration:
            identification["FechaVencimientoSecuencia"] = sequence_expiration(
                header.sequence_expiration, today
            )
        if rule.amount_indicator:
            identification["IndicadorMontoGravado"] = "1" if taxable_total > 0 else "0"
        if rule.deferred_delivery:
            identification["IndicadorEnvioDiferido"] = "1"
        if rule.credit_note_indicator:
            identification["IndicadorNotaCredito"] = "0"
        if rule.income_type:
            identification["TipoIngresos"] = rule.income_type
        if rule.payment_type:
            identification["TipoPago"] = rule.payment_type
        if rule.payment_table:
            identification["TablaFormasPago"] = [{"Forma": "1", "Monto": _money(total)}]
        return identification

    def _issuer(self, rule: DocumentTypeRule, issuer: Issuer, header: InvoiceHeader) -> Dict[str, Any]:
        emisor: Dict[str, Any] = {
            "RNC": issuer.tax_id,
            "RazonSocial": issuer.legal_name,
            "Direccion": issuer.address,
            "Municipio": issuer.municipality,
            "Provincia": issuer.province,
            "TablaTelefono": list(issuer.phones or []),
            "FechaEmision": format_dgii_date(header.issue_date) or None,
        }
        if rule.extended_parties:
            emisor.update(
                {
                    "nombreComercial": issuer.legal_name,
                    "correo": issuer.email,
                    "webSite": issuer.website,
                    "codigoVendedor": header.internal_id,
                    "numeroFacturaInterna": header.internal_id,
                    "numeroPedidoInterno": header.internal_id,
                    "zonaVenta": "PRINCIPAL",
                }
            )
        return emisor

    def _buyer(self, rule: DocumentTypeRule, buyer: Buyer) -> Dict[str, Any]:
        tax_id = buyer.tax_id if rule.buyer_tax_id_required else None
        comprador: Dict[str, Any] = {
            "rnc": tax_id,
            "razonSocial": buyer.name,
            "correo": buyer.email,
            "direccion": buyer.address,
            "municipio": buyer.municipality,
            "provincia": buyer.province,
        }
        if rule.extended_parties:
            comprador.update(
                {
                    "contacto": buyer.name,
                    "envioMail": "SI" if buyer.email else "NO",
                    "fechaEntrega": buyer.delivery_date,
                    "fechaOrden": buyer.order_date,
                    "numeroOrden": buyer.order_number,
                    "codigoInterno": buyer.internal_code or tax_id,
                }
            )
        return comprador

    def _line(self, rule: DocumentTypeRule, index: int, line: _Line) -> Dict[str, Any]:
        item = line.item
        detail: Dict[str, Any] = {
            "NumeroLinea": str(index + 1),
            "IndicadorFacturacion": TAXABLE_INDICATOR if line.taxable else EXEMPT_INDICATOR,
        }
        if rule.line_withholding:
            detail["retencion"] = {
                "indicadorAgente": "1",
                "montoITBIS": _money(line.amount * ITBIS_RATE) if line.taxable else "0.00",
                "montoISR": "0.00",
            }
        detail.update(
            {
                "Nombre": _blank_to_none(item.name),
                "IndicadorBienoServicio": item.goods_or_service or "1",
                "Descripcion": item.description,
                "Cantidad": str(item.quantity) if item.quantity not in (None, "") else "1.00",
                "UnidadMedida": item.unit or "43",
                "PrecioUnitario": _money(line.amount),
                "Monto": _money(line.amount),
            }
        )
        return detail

    def _totals(
        self,
        rule: DocumentTypeRule,
        taxable_total: Decimal,
        exempt_total: Decimal,
        itbis: Decimal,
        total: Decimal,
    ) -> Dict[str, Any]:
        layout = rule.totals_layout

        if layout == TotalsLayout.MINOR_EXPENSES:
            return {"montoExento": _money(total), "montoTotal": _money(total)}

        if layout == TotalsLayout.GOVERNMENTAL:
            totals: Dict[str, Any] = {"MontoTotal": _money(total), "ValorPagar": _money(total)}
            if taxable_total > 0:
                totals.update(
                    {
                        "MontoGravadoTotal": _money(taxable_total),
                        "ITBIS1": ITBIS_RATE_LABEL,
                        "TotalITBIS": _money(itbis),
                        "TotalITBIS1": _money(itbis),
                    }
                )
            if exempt_total > 0:
                totals["MontoExento"] = _money(exempt_total)
            return totals

        totals = {
            "montoGravadoTotal": _money_or_none(taxable_total),
            "montoGravadoI1": _money_or_none(taxable_total),
            "itbiS1": ITBIS_RATE_LABEL if taxable_total > 0 else None,
            "totalITBIS": _money_or_none(itbis) if taxable_total > 0 else None,
            "totalITBIS1": _money_or_none(itbis) if taxable_total > 0 else None,
            "montoTotal": _money(total),
            "montoExento": _money_or_none(exempt_total),
        }
        if layout in (TotalsLayout.SPECIAL_REGIME, TotalsLayout.WITHHOLDING):
            totals["valorPagar"] = _money(total)
        if layout == TotalsLayout.WITHHOLDING:
            totals["totalITBISRetenido"] = _money(itbis) if taxable_total > 0 else "0.00"
            totals["totalISRRetencion"] = "0.00"
        return totals
