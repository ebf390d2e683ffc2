"""Simplified invoice accepted from callers

This is the loose, Spanish-keyed shape produced by point-of-sale and
practice-management clients. Everything is optional here: required-field
checks happen in one pass inside the document transformer so that all
problems are reported together.
"""

from typing import List, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Amount = Optional[Union[str, int, float]]


class Issuer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    tax_id: Optional[str] = Field(default=None, alias="rnc")
    legal_name: Optional[str] = Field(default=None, alias="razonSocial")
    address: Optional[str] = Field(default=None, alias="direccion")
    municipality: Optional[str] = Field(default=None, alias="municipio")
    province: Optional[str] = Field(default=None, alias="provincia")
    phones: Optional[List[str]] = Field(default=None, alias="telefono")
    email: Optional[str] = Field(default=None, alias="correo")
    website: Optional[str] = Field(default=None, alias="webSite")


class Buyer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    tax_id: Optional[str] = Field(default=None, alias="rnc")
    name: Optional[str] = Field(default=None, alias="nombre")
    email: Optional[str] = Field(default=None, alias="correo")
    address: Optional[str] = Field(default=None, alias="direccion")
    municipality: Optional[str] = Field(default=None, alias="municipio")
    province: Optional[str] = Field(default=None, alias="provincia")
    delivery_date: Optional[str] = Field(default=None, alias="fechaEntrega")
    order_date: Optional[str] = Field(default=None, alias="fechaOrden")
    order_number: Optional[str] = Field(default=None, alias="numeroOrden")
    internal_code: Optional[str] = Field(default=None, alias="codigoInterno")


class InvoiceHeader(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    document_type: Optional[str] = Field(default=None, alias="tipo")
    ncf: Optional[str] = Field(default=None, alias="ncf")
    total: Amount = Field(default=None, alias="total")
    issue_date: Optional[str] = Field(default=None, alias="fecha")
    sequence_expiration: Optional[str] = Field(default=None, alias="fechaVencNCF")
    internal_id: Optional[str] = Field(default=None, alias="id")
    container_number: Optional[str] = Field(default=None, alias="numeroContenedor")
    modified_ncf: Optional[str] = Field(default=None, alias="ncfModificado")
    modified_ncf_date: Optional[str] = Field(default=None, alias="fechaNCFModificado")
    modification_code: Optional[Union[str, int]] = Field(default=None, alias="codigoModificacion")
    modification_reason: Optional[str] = Field(default=None, alias="razonModificacion")


class LineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: Optional[str] = Field(default=None, alias="nombre")
    price: Amount = Field(default=None, alias="precio")
    itbis: Optional[bool] = Field(default=None, alias="itbis")
    taxable: Optional[bool] = Field(default=None, alias="gravado")
    exempt: Optional[bool] = Field(default=None, alias="exento")
    quantity: Amount = Field(default=None, alias="cantidad")
    description: Optional[str] = Field(default=None, alias="descripcion")
    unit: Optional[str] = Field(default=None, alias="unidadMedida")
    goods_or_service: Optional[str] = Field(default=None, alias="indicadorBienoServicio")

    def is_taxable(self, default_taxable: bool = False) -> bool:
        if default_taxable:
            return not (self.itbis is False or self.taxable is False or self.exempt is True)
        return self.itbis is True or self.taxable is True


class ReturnedItem(BaseModel):
    """Credit-note line as sent by the returns workflow"""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: Optional[str] = Field(default=None, alias="nombre")
    price: Amount = Field(default=None, alias="precio")
    credit_amount: Amount = Field(default=None, alias="montoAcreditar")


class Modification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    modified_ncf: Optional[str] = Field(default=None, alias="NCFModificado")
    modified_ncf_date: Optional[str] = Field(default=None, alias="FechaNCFModificado")
    modification_code: Optional[Union[str, int]] = Field(default=None, alias="CodigoModificacion")
    modification_reason: Optional[str] = Field(default=None, alias="RazonModificacion")


class Discount(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    amount: Amount = Field(default=None, validation_alias=AliasChoices("Monto", "monto", "amount"))
    value: Amount = Field(default=None, validation_alias=AliasChoices("valor", "value"))
    percentage: Amount = Field(default=None, validation_alias=AliasChoices("porcentaje", "percentage"))
    description: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("Descripcion", "descripcion", "concepto", "description"),
    )
    billing_indicator: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("indicadorFacturacion", "billing_indicator")
    )


class Adjustments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    discounts: Optional[Union[List[Discount], Discount]] = Field(default=None, alias="Descuentos")


class SimplifiedInvoice(BaseModel):
    """
    Simplified invoice as sent by callers

    Discounts may come either in ``DescuentosORecargos.Descuentos`` (takes
    priority) or in ``descuentos``, as a list of line discounts or a single
    global discount (amount or percentage).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "emisor": {"rnc": "130862346", "razonSocial": "Clínica Ejemplo SRL"},
                "comprador": {"rnc": "101010101", "nombre": "Cliente Ejemplo"},
                "factura": {
                    "tipo": "31",
                    "ncf": "E310000000001",
                    "total": "1,180.00",
                    "fecha": "2025-06-01",
                    "fechaVencNCF": "31-12-2026",
                },
                "items": [{"nombre": "Consulta", "precio": "1180.00"}],
            }
        },
    )

    buyer: Optional[Buyer] = Field(default=None, alias="comprador")
    issuer: Optional[Issuer] = Field(default=None, alias="emisor")
    header: Optional[InvoiceHeader] = Field(default=None, alias="factura")
    items: Optional[List[LineItem]] = Field(default=None, alias="items")
    returned_items: Optional[List[ReturnedItem]] = Field(default=None, alias="ItemsDevueltos")
    modification: Optional[Modification] = Field(default=None, alias="modificacion")
    discounts: Optional[Union[List[Discount], Discount]] = Field(default=None, alias="descuentos")
    adjustments: Optional[Adjustments] = Field(default=None, alias="DescuentosORecargos")

    def to_payload(self) -> dict:
        """Original caller representation, used in failure reports"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

