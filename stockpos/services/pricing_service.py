"""
Pricing engine: unit cost, sale price and margin arithmetic.

Two sale-price formulas coexist on purpose and are chosen by call site:

- ``price_from_margin``: margin over the sale price, ``cost / (1 - m)``,
  unrounded. Used when a product is created.
- ``price_from_markup``: markup over cost, ``cost * (1 + m)``, rounded
  half-up to an integer. Used when a product is edited and by the price
  maintenance commands.

They are not algebraically equivalent (100 at 50% gives 200 and 150
respectively). Which one is the intended business rule is an open question
for the product owner; do not merge them.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from stockpos.exceptions import InvalidInputError
from stockpos.models.product import PricingMode

HUNDRED = Decimal('100')
ONE = Decimal('1')


@dataclass(frozen=True)
class PriceQuote:
    """Normalized price triple for a product."""
    unit_cost: Decimal
    sale_price: Decimal
    margin_pct: Decimal


def to_decimal(value, field='valor'):
    """Convert user/ORM numbers to Decimal, rejecting garbage instead of clamping."""
    if value is None or isinstance(value, bool):
        raise InvalidInputError(f'El campo {field} es requerido y debe ser numérico')
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f'El campo {field} debe ser numérico')
    if not number.is_finite():
        raise InvalidInputError(f'El campo {field} debe ser un número finito')
    return number


def round_half_up(value):
    """Integer rounding with .5 going up (not banker's rounding)."""
    return to_decimal(value).quantize(ONE, rounding=ROUND_HALF_UP)


def normalize_pricing_mode(pricing_mode):
    if isinstance(pricing_mode, PricingMode):
        return pricing_mode
    if pricing_mode is None:
        return PricingMode.UNIT
    try:
        return PricingMode(str(pricing_mode).upper())
    except ValueError:
        raise InvalidInputError(f'Modo de precio inválido: {pricing_mode}')


def package_weight_for(pricing_mode, package_weight_kg):
    """
    Effective package weight: the given weight for WEIGHT products
    (1 when absent, unparsable or not positive), always 1 for UNIT products.
    """
    if normalize_pricing_mode(pricing_mode) is not PricingMode.WEIGHT:
        return ONE
    if package_weight_kg is None or package_weight_kg == '':
        return ONE
    try:
        weight = to_decimal(package_weight_kg, 'packageWeightKg')
    except InvalidInputError:
        return ONE
    return weight if weight > 0 else ONE


def unit_cost(purchase_price, pricing_mode=PricingMode.UNIT, package_weight_kg=None):
    """Per-unit (or per-kg for WEIGHT products) cost."""
    price = to_decimal(purchase_price, 'purchasePrice')
    if price < 0:
        raise InvalidInputError('El precio de compra no puede ser negativo')
    mode = normalize_pricing_mode(pricing_mode)
    if mode is PricingMode.WEIGHT:
        return price / package_weight_for(mode, package_weight_kg)
    return price


def _check_cost_and_pct(cost, margin_pct):
    cost = to_decimal(cost, 'unitCost')
    pct = to_decimal(margin_pct, 'marginPct')
    if cost < 0:
        raise InvalidInputError('El costo unitario no puede ser negativo')
    if pct < 0:
        raise InvalidInputError('El porcentaje de ganancia no puede ser negativo')
    return cost, pct


def price_from_markup(cost, margin_pct):
    """``round(cost * (1 + margin_pct / 100))``, half-up."""
    cost, pct = _check_cost_and_pct(cost, margin_pct)
    return round_half_up(cost * (ONE + pct / HUNDRED))


def price_from_margin(cost, margin_pct):
    """``cost / (1 - margin_pct / 100)``, not rounded."""
    cost, pct = _check_cost_and_pct(cost, margin_pct)
    if pct >= HUNDRED:
        raise InvalidInputError('El margen debe ser menor a 100%')
    return cost / (ONE - pct / HUNDRED)


def margin_from_prices(cost, sale_price):
    """Markup percentage over cost: ``(sale - cost) / cost * 100``."""
    cost = to_decimal(cost, 'unitCost')
    sale = to_decimal(sale_price, 'salePrice')
    if cost <= 0:
        raise InvalidInputError('El costo unitario debe ser mayor a 0 para calcular el porcentaje')
    return (sale - cost) / cost * HUNDRED


def realized_margin(cost, sale_price):
    """Margin as a share of the sale price: ``(sale - cost) / sale * 100``."""
    cost = to_decimal(cost, 'unitCost')
    sale = to_decimal(sale_price, 'salePrice')
    if sale <= 0:
        raise InvalidInputError('El precio de venta debe ser mayor a 0 para calcular el margen')
    return (sale - cost) / sale * HUNDRED


def prices_for_create(purchase_price, pricing_mode, package_weight_kg=None, margin_pct=None, sale_price=None):
    """
    Price triple used when a product is created.

    With a margin the sale price comes from the margin formula. When only an
    explicit sale price is given, the markup percentage is back-derived from it.
    """
    cost = unit_cost(purchase_price, pricing_mode, package_weight_kg)

    if margin_pct is not None:
        pct = to_decimal(margin_pct, 'marginPct')
        return PriceQuote(cost, price_from_margin(cost, pct), pct)

    if sale_price is not None:
        sale = to_decimal(sale_price, 'salePrice')
        if sale < 0:
            raise InvalidInputError('El precio de venta no puede ser negativo')
        pct = margin_from_prices(cost, sale).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        return PriceQuote(cost, sale, pct)

    raise InvalidInputError('Debe indicar el porcentaje de ganancia o el precio de venta')


def prices_for_update(purchase_price, pricing_mode, package_weight_kg=None, margin_pct=None, sale_price=None):
    """
    Price triple used when a product is edited: an explicit sale price wins,
    otherwise the markup formula; either way rounded half-up to an integer.
    Callers pass the stored margin when the request leaves it out.
    """
    cost = unit_cost(purchase_price, pricing_mode, package_weight_kg)
    if margin_pct is None:
        raise InvalidInputError('Debe indicar el porcentaje de ganancia')
    pct = to_decimal(margin_pct, 'marginPct')
    if pct < 0:
        raise InvalidInputError('El porcentaje de ganancia no puede ser negativo')

    if sale_price is not None:
        sale = to_decimal(sale_price, 'salePrice')
        if sale < 0:
            raise InvalidInputError('El precio de venta no puede ser negativo')
        return PriceQuote(cost, round_half_up(sale), pct)

    return PriceQuote(cost, price_from_markup(cost, pct), pct)
