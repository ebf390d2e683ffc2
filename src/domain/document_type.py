"""Electronic document types and their per-type submission rules

The certification service validates each document type against a different
structure. Every structural difference is captured here as data so the
transformer can stay a single generic builder.
"""

from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    """e-CF document types accepted by DGII"""
    CREDIT_FISCAL = "31"        # Factura de Crédito Fiscal
    FINAL_CONSUMER = "32"       # Factura de Consumo
    DEBIT_NOTE = "33"           # Nota de Débito
    CREDIT_NOTE = "34"          # Nota de Crédito
    PURCHASES = "41"            # Compras
    MINOR_EXPENSES = "43"       # Gastos Menores
    SPECIAL_REGIME = "44"       # Regímenes Especiales
    GOVERNMENTAL = "45"         # Gubernamental

    @classmethod
    def codes(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, code: Optional[str]) -> Optional["DocumentType"]:
        """Return the member for ``code`` or None when it is not a valid type"""
        if code is None:
            return None
        try:
            return cls(str(code).strip())
        except ValueError:
            return None


class TotalsLayout(str, Enum):
    """Shape of the Totales block"""
    STANDARD = "standard"
    WITHHOLDING = "withholding"
    MINOR_EXPENSES = "minor_expenses"
    SPECIAL_REGIME = "special_regime"
    GOVERNMENTAL = "governmental"


class DocumentTypeRule(BaseModel):
    """
    Submission rules for one document type

    Header flags map one-to-one to optional IdentificacionDocumento fields.
    """

    model_config = {"frozen": True}

    document_type: DocumentType
    description: str
    requires_expiration: bool = Field(
        ..., description="FechaVencimientoSecuencia is emitted (and ranges expire)"
    )
    buyer_section: bool = Field(default=True, description="comprador block is emitted")
    buyer_tax_id_required: bool = Field(
        default=True, description="comprador.rnc must be present; False means it is forced to null"
    )
    extended_parties: bool = Field(
        default=False,
        description="Issuer/buyer commercial fields and informacionesAdicionales are emitted",
    )
    requires_reference: bool = Field(
        default=False, description="InformacionReferencia to a prior document is mandatory"
    )
    line_withholding: bool = Field(default=False, description="Each line carries a retencion block")
    amount_indicator: bool = Field(default=False, description="IndicadorMontoGravado")
    deferred_delivery: bool = Field(default=False, description="IndicadorEnvioDiferido")
    credit_note_indicator: bool = Field(default=False, description="IndicadorNotaCredito")
    income_type: Optional[str] = Field(default=None, description="TipoIngresos code")
    payment_type: Optional[str] = Field(default=None, description="TipoPago code")
    payment_table: bool = Field(default=False, description="TablaFormasPago is emitted")
    totals_layout: TotalsLayout = TotalsLayout.STANDARD
    always_emit_adjustments: bool = Field(
        default=False, description="DescuentosORecargos is emitted even when empty"
    )
    default_taxable: bool = Field(
        default=False,
        description="Unflagged lines are taxable; only itbis=false, gravado=false or exento=true exempt them",
    )


DOCUMENT_TYPE_RULES: Dict[DocumentType, DocumentTypeRule] = {
    DocumentType.CREDIT_FISCAL: DocumentTypeRule(
        document_type=DocumentType.CREDIT_FISCAL,
        description="Factura de Crédito Fiscal Electrónica",
        requires_expiration=True,
        extended_parties=True,
        amount_indicator=True,
        deferred_delivery=True,
        income_type="01",
        payment_type="1",
        payment_table=True,
    ),
    DocumentType.FINAL_CONSUMER: DocumentTypeRule(
        document_type=DocumentType.FINAL_CONSUMER,
        description="Factura de Consumo Electrónica",
        requires_expiration=False,
        buyer_tax_id_required=False,
        extended_parties=True,
        amount_indicator=True,
        deferred_delivery=True,
        income_type="01",
        payment_type="1",
        payment_table=True,
    ),
    DocumentType.DEBIT_NOTE: DocumentTypeRule(
        document_type=DocumentType.DEBIT_NOTE,
        description="Nota de Débito Electrónica",
        requires_expiration=True,
        extended_parties=True,
        requires_reference=True,
        amount_indicator=True,
        income_type="03",
        payment_type="1",
        payment_table=True,
    ),
    DocumentType.CREDIT_NOTE: DocumentTypeRule(
        document_type=DocumentType.CREDIT_NOTE,
        description="Nota de Crédito Electrónica",
        requires_expiration=False,
        extended_parties=True,
        requires_reference=True,
        amount_indicator=True,
        credit_note_indicator=True,
        income_type="01",
        payment_type="1",
    ),
    DocumentType.PURCHASES: DocumentTypeRule(
        document_type=DocumentType.PURCHASES,
        description="Compras Electrónico",
        requires_expiration=True,
        line_withholding=True,
        amount_indicator=True,
        payment_type="1",
        payment_table=True,
        totals_layout=TotalsLayout.WITHHOLDING,
    ),
    DocumentType.MINOR_EXPENSES: DocumentTypeRule(
        document_type=DocumentType.MINOR_EXPENSES,
        description="Gastos Menores Electrónico",
        requires_expiration=True,
        buyer_section=False,
        totals_layout=TotalsLayout.MINOR_EXPENSES,
    ),
    DocumentType.SPECIAL_REGIME: DocumentTypeRule(
        document_type=DocumentType.SPECIAL_REGIME,
        description="Regímenes Especiales Electrónico",
        requires_expiration=True,
        income_type="01",
        payment_type="1",
        payment_table=True,
        totals_layout=TotalsLayout.SPECIAL_REGIME,
    ),
    DocumentType.GOVERNMENTAL: DocumentTypeRule(
        document_type=DocumentType.GOVERNMENTAL,
        description="Gubernamental Electrónico",
        requires_expiration=True,
        amount_indicator=True,
        income_type="01",
        payment_type="1",
        totals_layout=TotalsLayout.GOVERNMENTAL,
        always_emit_adjustments=True,
        default_taxable=True,
    ),
}


def get_rule(document_type: DocumentType) -> DocumentTypeRule:
    return DOCUMENT_TYPE_RULES[document_type]


def requires_expiration(document_type: DocumentType) -> bool:
    """True when ranges and submissions of this type carry a sequence expiry date"""
    return DOCUMENT_TYPE_RULES[document_type].requires_expiration
