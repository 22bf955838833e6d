#   Copyright 2026 GreenCart Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Order amount calculation.

Two computations of the same charge exist and must agree:

- The stored order amount applies the 2% tax once, to the subtotal, and floors
  the result to whole currency units.
- The payment gateway is sent a per-unit price that already carries the 2%
  surcharge, in minor currency units.

`reconcile_charge` compares them so a customer is never charged a different
total than the order records.
"""

import dataclasses
import decimal
from decimal import Decimal
import math
from typing import Dict, Iterable, List, Sequence

from greencart import db
from greencart.exceptions import AmountMismatchError
from greencart.exceptions import ProductNotFoundError
from greencart.models import CheckoutLine
from greencart.models import OrderLineRequest
from sqlalchemy.ext.asyncio import AsyncSession

TAX_RATE = Decimal("0.02")


@dataclasses.dataclass(frozen=True)
class AmountBreakdown:
  subtotal: int
  tax: int
  amount: int


def compute_tax(subtotal: int) -> int:
  """Returns the tax surcharge on a subtotal, floored to whole units."""
  return math.floor(Decimal(subtotal) * TAX_RATE)


def compute_amount(
    items: Iterable[OrderLineRequest], prices: Dict[str, int]
) -> AmountBreakdown:
  """Folds resolved offer prices into an order amount.

  Args:
    items: The order lines.
    prices: Offer price by product ID. Must cover every line.

  Returns:
    The subtotal, the tax and their sum.

  Raises:
    ProductNotFoundError: A line references a product missing from `prices`.
  """
  subtotal = 0
  for item in items:
    if item.product not in prices:
      raise ProductNotFoundError(item.product)
    subtotal += prices[item.product] * item.quantity
  tax = compute_tax(subtotal)
  return AmountBreakdown(subtotal=subtotal, tax=tax, amount=subtotal + tax)


async def resolve_products(
    session: AsyncSession, items: Sequence[OrderLineRequest]
) -> Dict[str, db.Product]:
  """Looks up every product referenced by the order in one catalog query.

  Raises:
    ProductNotFoundError: Any referenced product does not exist.
  """
  products = await db.get_products(session, (item.product for item in items))
  for item in items:
    if item.product not in products:
      raise ProductNotFoundError(item.product)
  return products


def gateway_unit_amount(offer_price: int, minor_units: int = 100) -> int:
  """Per-unit gateway price including the surcharge, in minor units."""
  unit = Decimal(offer_price) * (1 + TAX_RATE) * minor_units
  return int(unit.to_integral_value(rounding=decimal.ROUND_FLOOR))


def build_checkout_lines(
    items: Sequence[OrderLineRequest], products: Dict[str, db.Product]
) -> List[CheckoutLine]:
  """Pairs each order line with the product name and offer price."""
  return [
      CheckoutLine(
          name=products[item.product].name,
          unit_price=products[item.product].offer_price,
          quantity=item.quantity,
      )
      for item in items
  ]


def reconcile_charge(
    amount: int, lines: Sequence[CheckoutLine], minor_units: int = 100
) -> int:
  """Checks the per-line gateway charge against the stored order amount.

  The per-unit surcharge is exact in minor units while the stored amount
  floors the tax to whole units, so the two may differ by less than one whole
  currency unit.

  Args:
    amount: The order amount in whole currency units.
    lines: The lines that will be sent to the gateway.
    minor_units: Minor units per whole currency unit.

  Returns:
    The total the gateway will charge, in minor units.

  Raises:
    AmountMismatchError: The totals differ by a whole currency unit or more.
  """
  charged = sum(
      gateway_unit_amount(line.unit_price, minor_units) * line.quantity
      for line in lines
  )
  expected = amount * minor_units
  if abs(charged - expected) >= minor_units:
    raise AmountMismatchError(expected, charged)
  return charged
