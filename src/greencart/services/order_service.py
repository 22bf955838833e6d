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

"""Order placement and listing.

Orders are placed in one of two payment modes:

- COD: the order is recorded as placed and is immediately visible.
- Online: a pending order is recorded, then a checkout session is requested
  from the payment gateway and the caller is redirected to it. The order
  becomes visible only once the webhook processor marks it paid.

Amounts are always computed from authoritative catalog prices, never from
client-supplied prices. Online orders abandoned at checkout are removed by
`expire_pending_orders`.
"""

import datetime
import logging
from typing import List, Optional, Sequence
import uuid

from greencart import db
from greencart.config import StorefrontSettings
from greencart.enums import PaymentType
from greencart.exceptions import InvalidRequestError
from greencart.models import AddressView
from greencart.models import CheckoutSessionRequest
from greencart.models import OrderItemView
from greencart.models import OrderLineRequest
from greencart.models import OrderView
from greencart.models import ProductView
from greencart.models import SessionMetadata
from greencart.services import amounts
from greencart.services.gateway import PaymentGateway
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class OrderService:
  """Service for placing and listing orders."""

  def __init__(
      self,
      products_session: AsyncSession,
      transactions_session: AsyncSession,
      gateway: PaymentGateway,
      settings: StorefrontSettings,
  ):
    self.products_session = products_session
    self.transactions_session = transactions_session
    self.gateway = gateway
    self.settings = settings

  def _validate(
      self, items: Sequence[OrderLineRequest], address_id: Optional[str]
  ) -> None:
    """Rejects orders without an address, without items or with bad lines."""
    if not address_id or not items:
      raise InvalidRequestError("Invalid data")
    for item in items:
      if item.quantity <= 0:
        raise InvalidRequestError(
            f"Quantity for product {item.product} must be positive"
        )

  async def place_order_cod(
      self,
      user_id: str,
      items: Sequence[OrderLineRequest],
      address_id: Optional[str],
  ) -> str:
    """Places a cash-on-delivery order.

    Args:
      user_id: The ordering user.
      items: The order lines.
      address_id: The shipping address reference.

    Returns:
      The ID of the created order.

    Raises:
      InvalidRequestError: Items are empty or the address is missing.
      ProductNotFoundError: A line references an unknown product. No order is
        created.
    """
    self._validate(items, address_id)
    products = await amounts.resolve_products(self.products_session, items)
    breakdown = amounts.compute_amount(
        items, {pid: p.offer_price for pid, p in products.items()}
    )

    order_id = str(uuid.uuid4())
    await db.create_order(
        self.transactions_session,
        order_id,
        user_id,
        [item.model_dump() for item in items],
        breakdown.amount,
        address_id,
        PaymentType.COD,
    )
    await self.transactions_session.commit()
    logger.info(
        "Placed COD order %s for user %s (amount %d)",
        order_id,
        user_id,
        breakdown.amount,
    )
    return order_id

  async def place_order_online(
      self,
      user_id: str,
      items: Sequence[OrderLineRequest],
      address_id: Optional[str],
      return_origin: str,
  ) -> str:
    """Places an online order and opens a checkout session for it.

    The pending order is committed before the gateway is called, so a gateway
    failure leaves it in place (hidden from listings) for the expiry job.

    Args:
      user_id: The ordering user.
      items: The order lines.
      address_id: The shipping address reference.
      return_origin: Origin of the storefront the gateway redirects back to.

    Returns:
      The checkout session URL the client must be redirected to.

    Raises:
      InvalidRequestError: Items are empty or the address is missing.
      ProductNotFoundError: A line references an unknown product.
      AmountMismatchError: Per-line gateway charges disagree with the amount.
      GatewayUnavailableError: The gateway could not be reached.
      GatewayRejectedError: The gateway refused the session.
    """
    self._validate(items, address_id)
    products = await amounts.resolve_products(self.products_session, items)
    breakdown = amounts.compute_amount(
        items, {pid: p.offer_price for pid, p in products.items()}
    )
    lines = amounts.build_checkout_lines(items, products)
    amounts.reconcile_charge(
        breakdown.amount, lines, self.settings.gateway.minor_units
    )

    order_id = str(uuid.uuid4())
    await db.create_order(
        self.transactions_session,
        order_id,
        user_id,
        [item.model_dump() for item in items],
        breakdown.amount,
        address_id,
        PaymentType.ONLINE,
    )
    await self.transactions_session.commit()
    logger.info("Created pending online order %s for user %s", order_id, user_id)

    origin = return_origin.rstrip("/")
    session = await self.gateway.create_checkout_session(
        CheckoutSessionRequest(
            lines=lines,
            currency=self.settings.gateway.currency,
            success_url=f"{origin}/loader?next=my-orders",
            cancel_url=f"{origin}/cart",
            metadata=SessionMetadata(order_id=order_id, user_id=user_id),
        )
    )
    logger.info("Checkout session %s opened for order %s", session.id, order_id)
    return session.url

  async def list_user_orders(self, user_id: str) -> List[OrderView]:
    """Lists a user's COD and paid orders, newest first."""
    orders = await db.list_visible_orders(self.transactions_session, user_id)
    return await self._populate(orders)

  async def list_all_orders(self) -> List[OrderView]:
    """Lists every user's COD and paid orders, newest first."""
    orders = await db.list_visible_orders(self.transactions_session)
    return await self._populate(orders)

  async def _populate(self, orders: Sequence[db.Order]) -> List[OrderView]:
    """Attaches product and address details to stored orders."""
    products = await db.get_products(
        self.products_session,
        (item["product"] for order in orders for item in order.items),
    )
    addresses = await db.get_addresses(
        self.transactions_session, (order.address_id for order in orders)
    )

    views = []
    for order in orders:
      items = []
      for item in order.items:
        product = products.get(item["product"])
        items.append(
            OrderItemView(
                product_id=item["product"],
                quantity=item["quantity"],
                product=ProductView.model_validate(product) if product else None,
            )
        )
      address = addresses.get(order.address_id)
      views.append(
          OrderView(
              id=order.id,
              user_id=order.user_id,
              items=items,
              amount=order.amount,
              address_id=order.address_id,
              address=AddressView.model_validate(address) if address else None,
              status=order.status,
              payment_type=order.payment_type,
              is_paid=order.is_paid,
              created_at=order.created_at,
              updated_at=order.updated_at,
          )
      )
    return views


async def expire_pending_orders(
    transactions_session: AsyncSession, max_age: datetime.timedelta
) -> List[str]:
  """Deletes online orders that stayed unpaid for longer than `max_age`.

  Returns:
    The IDs of the deleted orders.
  """
  cutoff = (datetime.datetime.now(datetime.timezone.utc) - max_age).isoformat(
      timespec="microseconds"
  )
  order_ids = await db.delete_stale_pending_orders(transactions_session, cutoff)
  await transactions_session.commit()
  for order_id in order_ids:
    logger.info("Expired abandoned online order %s", order_id)
  return order_ids
