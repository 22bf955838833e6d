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

"""Cart synchronization for the storefront client."""

import logging
from typing import Dict, Optional

from greencart import db
from greencart.exceptions import CartConflictError
from greencart.exceptions import InvalidRequestError
from greencart.exceptions import ResourceNotFoundError
from greencart.models import CartView
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class CartService:
  """Reads and replaces a user's cart document."""

  def __init__(self, transactions_session: AsyncSession):
    self.transactions_session = transactions_session

  async def get_cart(self, user_id: str) -> CartView:
    user = await db.get_user(self.transactions_session, user_id)
    if not user:
      raise ResourceNotFoundError("User not found")
    return CartView(
        cart_items=user.cart_items or {}, version=user.cart_version or 0
    )

  async def update_cart(
      self,
      user_id: str,
      cart_items: Dict[str, int],
      expected_version: Optional[int] = None,
  ) -> CartView:
    """Replaces the whole cart; entries with quantity zero are dropped.

    Raises:
      InvalidRequestError: A quantity is negative.
      ResourceNotFoundError: The user does not exist.
      CartConflictError: `expected_version` no longer matches the stored cart.
    """
    for product_id, quantity in cart_items.items():
      if quantity < 0:
        raise InvalidRequestError(
            f"Quantity for product {product_id} cannot be negative"
        )
    cleaned = {pid: qty for pid, qty in cart_items.items() if qty > 0}

    updated = await db.replace_cart(
        self.transactions_session, user_id, cleaned, expected_version
    )
    if not updated:
      await self.transactions_session.rollback()
      if not await db.get_user(self.transactions_session, user_id):
        raise ResourceNotFoundError("User not found")
      raise CartConflictError("Cart was modified by another request")
    await self.transactions_session.commit()
    return await self.get_cart(user_id)
