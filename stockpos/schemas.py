"""
Request schemas for the JSON API.

One model per operation. Unknown fields are rejected; field names follow the
HTTP contract (camelCase) through aliases.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from stockpos.exceptions import InvalidInputError
from stockpos.models import MovementType, PricingMode


class RequestModel(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True, str_strip_whitespace=True)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ProductFields(RequestModel):
    sku: str = Field(..., min_length=1, max_length=64)
    barcode: Optional[str] = Field(None, max_length=64)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = Field(None, alias='categoryId')
    supplier_id: Optional[int] = Field(None, alias='supplierId')
    purchase_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, alias='purchasePrice')
    margin_pct: Optional[Decimal] = Field(None, ge=0, max_digits=8, decimal_places=2, alias='marginPct')
    sale_price: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=4, alias='salePrice')
    pricing_mode: PricingMode = Field(PricingMode.UNIT, alias='pricingMode')
    package_weight_kg: Optional[Decimal] = Field(None, max_digits=10, decimal_places=3, alias='packageWeightKg')
    stock_qty: Decimal = Field(Decimal('0'), ge=0, max_digits=12, decimal_places=3, alias='stockQty')
    stock_min: Decimal = Field(Decimal('0'), ge=0, max_digits=12, decimal_places=3, alias='stockMin')

    @field_validator(
        'barcode', 'description', 'category_id', 'supplier_id', 'margin_pct',
        'sale_price', 'package_weight_kg', mode='before'
    )
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator('pricing_mode', mode='before')
    @classmethod
    def upper_mode(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return PricingMode.UNIT
        return value.upper() if isinstance(value, str) else value


class ProductCreate(ProductFields):
    pass


class ProductUpdate(ProductFields):
    # Omitted stock fields leave the current values untouched
    stock_qty: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=3, alias='stockQty')
    stock_min: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=3, alias='stockMin')

    @field_validator('stock_qty', 'stock_min', mode='before')
    @classmethod
    def blank_stock_is_missing(cls, value):
        return _blank_to_none(value)


class MovementCreate(RequestModel):
    product_id: int = Field(..., alias='productId')
    type: MovementType
    qty: Decimal = Field(..., gt=0, max_digits=12, decimal_places=3)
    reference: Optional[str] = None

    @field_validator('type', mode='before')
    @classmethod
    def upper_type(cls, value):
        return value.upper() if isinstance(value, str) else value


class SaleItemIn(RequestModel):
    product_id: int = Field(..., alias='productId')
    qty: Decimal = Field(..., gt=0, max_digits=12, decimal_places=3)
    price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=4)


class SaleCreate(RequestModel):
    items: List[SaleItemIn] = Field(..., min_length=1)
    # Rounded to cents when stored
    total: Optional[Decimal] = Field(None, ge=0, max_digits=16, decimal_places=4)


class CategoryIn(RequestModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class SupplierIn(RequestModel):
    name: str = Field(..., min_length=1)
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator('contact', 'email', 'phone', 'address', mode='before')
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)


def load(schema, payload):
    """Validate ``payload`` against ``schema`` or raise InvalidInputError."""
    if not isinstance(payload, dict):
        raise InvalidInputError('El cuerpo de la solicitud debe ser un objeto JSON')
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            {'field': '.'.join(str(part) for part in err['loc']), 'message': err['msg']}
            for err in e.errors()
        ]
        message = '; '.join(f"{err['field']}: {err['message']}" for err in errors)
        raise InvalidInputError(f'Datos inválidos - {message}', {'errors': errors})
