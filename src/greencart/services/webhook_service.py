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

"""Reconciliation of payment gateway webhooks into order and cart state.

A delivery is handled in this order:

1. The raw body is verified against its signature. Nothing is decoded or
   written before verification succeeds.
2. Redelivered events (same event ID) are acknowledged without side effects.
3. The order behind the payment is resolved through the gateway's session
   lookup, then marked paid (clearing the cart) or deleted.
4. The state change and the processed-event record are committed together
   before the delivery is acknowledged.

Every mutation is idempotent on its own as well: a paid order is never paid
again (so the cart is only cleared on the unpaid -> paid transition) and
deleting an absent or already paid order does nothing.
"""

import logging
from typing import Optional

from greencart import db
from greencart.models import PaymentEvent
from greencart.models import PaymentSucceeded
from greencart.models import SessionMetadata
from greencart.models import UnknownPaymentEvent
from greencart.services.gateway import PaymentGateway
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class WebhookProcessor:
  """Applies verified payment events to stored orders and carts."""

  def __init__(
      self, transactions_session: AsyncSession, gateway: PaymentGateway
  ):
    self.transactions_session = transactions_session
    self.gateway = gateway

  async def handle(self, payload: bytes, signature: Optional[str]) -> str:
    """Verifies and processes one webhook delivery.

    Args:
      payload: The raw, undecoded request body.
      signature: The gateway's signature header.

    Returns:
      A short outcome label for the acknowledgement.

    Raises:
      SignatureInvalidError: The payload is not signed by the gateway.
      GatewayUnavailableError: The session lookup could not be performed; the
        delivery should be retried.
    """
    event = self.gateway.construct_event(payload, signature)

    if isinstance(event, UnknownPaymentEvent):
      logger.info(
          "Ignoring unhandled event type %s (%s)",
          event.event_type,
          event.event_id,
      )
      return "ignored"

    if await db.get_processed_event(self.transactions_session, event.event_id):
      logger.info("Event %s already processed", event.event_id)
      return "duplicate"

    return await self.apply(event)

  async def apply(self, event: PaymentEvent) -> str:
    """Applies a succeeded or failed payment event and records it.

    The processed-event record is committed in the same transaction as the
    order and cart changes. If another delivery of the same event commits
    first, this delivery is rolled back and reported as a duplicate.
    """
    metadata = await self.gateway.find_session_metadata(event.payment_reference)
    if metadata is None:
      logger.error(
          "No checkout session found for payment %s (event %s)",
          event.payment_reference,
          event.event_id,
      )
      outcome = "unmatched"
    elif isinstance(event, PaymentSucceeded):
      outcome = await self._settle(metadata)
    else:
      outcome = await self._discard(metadata)

    await db.save_processed_event(
        self.transactions_session,
        event.event_id,
        event.kind,
        metadata.order_id if metadata else None,
    )
    try:
      await self.transactions_session.commit()
    except IntegrityError:
      # Another delivery of the same event committed first.
      await self.transactions_session.rollback()
      logger.info("Event %s processed concurrently", event.event_id)
      return "duplicate"
    return outcome

  async def _settle(self, metadata: SessionMetadata) -> str:
    """Marks the order paid and empties the buyer's cart."""
    if not await db.mark_order_paid(
        self.transactions_session, metadata.order_id
    ):
      order = await db.get_order(self.transactions_session, metadata.order_id)
      if order is None:
        # Paid for an order that no longer exists; needs manual follow-up.
        logger.error(
            "Payment succeeded for missing order %s (user %s)",
            metadata.order_id,
            metadata.user_id,
        )
        return "order_missing"
      logger.info("Order %s already paid", metadata.order_id)
      return "already_paid"

    if not await db.clear_cart(self.transactions_session, metadata.user_id):
      logger.warning(
          "User %s of paid order %s not found; cart not cleared",
          metadata.user_id,
          metadata.order_id,
      )
    logger.info("Order %s paid", metadata.order_id)
    return "paid"

  async def _discard(self, metadata: SessionMetadata) -> str:
    """Deletes the pending order whose payment failed."""
    if await db.delete_unpaid_order(
        self.transactions_session, metadata.order_id
    ):
      logger.info("Deleted order %s after failed payment", metadata.order_id)
      return "deleted"
    logger.info(
        "Order %s absent or already paid; failed payment ignored",
        metadata.order_id,
    )
    return "not_applicable"
