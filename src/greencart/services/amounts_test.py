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

"""Tests for order amount calculation and gateway charge reconciliation."""

from absl.testing import absltest

from greencart.exceptions import AmountMismatchError
from greencart.exceptions import ProductNotFoundError
from greencart.models import CheckoutLine
from greencart.models import OrderLineRequest
from greencart.services import amounts


class ComputeAmountTest(absltest.TestCase):

  def test_subtotal_plus_floored_tax(self):
    breakdown = amounts.compute_amount(
        [OrderLineRequest(product="p1", quantity=2)], {"p1": 100}
    )
    self.assertEqual(breakdown.subtotal, 200)
    self.assertEqual(breakdown.tax, 4)
    self.assertEqual(breakdown.amount, 204)

  def test_tax_is_floored(self):
    # 99 * 0.02 = 1.98
    breakdown = amounts.compute_amount(
        [OrderLineRequest(product="p1", quantity=3)], {"p1": 33}
    )
    self.assertEqual(breakdown.subtotal, 99)
    self.assertEqual(breakdown.tax, 1)
    self.assertEqual(breakdown.amount, 100)

  def test_small_subtotal_has_no_tax(self):
    self.assertEqual(amounts.compute_tax(49), 0)
    self.assertEqual(amounts.compute_tax(50), 1)

  def test_multiple_lines_are_taxed_once(self):
    breakdown = amounts.compute_amount(
        [
            OrderLineRequest(product="p1", quantity=1),
            OrderLineRequest(product="p2", quantity=4),
        ],
        {"p1": 30, "p2": 5},
    )
    # Per-line taxes would floor to zero; the aggregate tax is 1.
    self.assertEqual(breakdown.subtotal, 50)
    self.assertEqual(breakdown.amount, 51)

  def test_missing_product_raises(self):
    with self.assertRaises(ProductNotFoundError) as cm:
      amounts.compute_amount(
          [
              OrderLineRequest(product="p1", quantity=1),
              OrderLineRequest(product="ghost", quantity=1),
          ],
          {"p1": 100},
      )
    self.assertEqual(cm.exception.product_id, "ghost")
    self.assertEqual(cm.exception.status_code, 404)


class GatewayAmountTest(absltest.TestCase):

  def test_unit_amount_carries_surcharge_in_minor_units(self):
    self.assertEqual(amounts.gateway_unit_amount(100), 10200)
    self.assertEqual(amounts.gateway_unit_amount(199), 20298)

  def test_unit_amount_is_floored(self):
    # 199 * 1.02 = 202.98 whole units.
    self.assertEqual(amounts.gateway_unit_amount(199, minor_units=1), 202)

  def test_reconcile_agreeing_totals(self):
    lines = [CheckoutLine(name="Potato", unit_price=100, quantity=2)]
    self.assertEqual(amounts.reconcile_charge(204, lines), 20400)

  def test_reconcile_tolerates_sub_unit_rounding(self):
    lines = [CheckoutLine(name="Tomato", unit_price=33, quantity=3)]
    breakdown = amounts.compute_amount(
        [OrderLineRequest(product="t", quantity=3)], {"t": 33}
    )
    self.assertEqual(amounts.reconcile_charge(breakdown.amount, lines), 10098)

  def test_reconcile_raises_on_divergence(self):
    lines = [CheckoutLine(name="Potato", unit_price=100, quantity=2)]
    with self.assertRaises(AmountMismatchError) as cm:
      amounts.reconcile_charge(200, lines)
    self.assertEqual(cm.exception.order_amount, 20000)
    self.assertEqual(cm.exception.charged_amount, 20400)

  def test_build_checkout_lines_uses_catalog_prices(self):

    class _Product:

      def __init__(self, name, offer_price):
        self.name = name
        self.offer_price = offer_price

    lines = amounts.build_checkout_lines(
        [OrderLineRequest(product="p1", quantity=3)],
        {"p1": _Product("Potato", 25)},
    )
    self.assertEqual(
        lines, [CheckoutLine(name="Potato", unit_price=25, quantity=3)]
    )


if __name__ == "__main__":
  absltest.main()
