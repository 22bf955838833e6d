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

"""Payment gateway adapter.

`PaymentGateway` is the narrow interface the order and webhook services depend
on: create a hosted checkout session, find the metadata of the session behind a
payment, and verify and decode a webhook delivery. `StripeGateway` implements
it with the Stripe SDK. The SDK is blocking, so calls run in a worker thread.
"""

import abc
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import stripe

from greencart.config import GatewaySettings
from greencart.exceptions import GatewayRejectedError
from greencart.exceptions import GatewayUnavailableError
from greencart.exceptions import InvalidRequestError
from greencart.exceptions import SignatureInvalidError
from greencart.models import CheckoutSessionHandle
from greencart.models import CheckoutSessionRequest
from greencart.models import PaymentEvent
from greencart.models import PaymentFailed
from greencart.models import PaymentSucceeded
from greencart.models import SessionMetadata
from greencart.models import UnknownPaymentEvent
from greencart.services import amounts

logger = logging.getLogger(__name__)

SUCCEEDED_EVENT = "payment_intent.succeeded"
FAILED_EVENT = "payment_intent.payment_failed"


def decode_event(event: Mapping[str, Any]) -> PaymentEvent:
  """Maps a verified Stripe event onto the closed set of payment events."""
  event_type = event["type"]
  if event_type == SUCCEEDED_EVENT:
    return PaymentSucceeded(
        event_id=event["id"], payment_reference=event["data"]["object"]["id"]
    )
  if event_type == FAILED_EVENT:
    return PaymentFailed(
        event_id=event["id"], payment_reference=event["data"]["object"]["id"]
    )
  return UnknownPaymentEvent(event_id=event["id"], event_type=event_type)


class PaymentGateway(abc.ABC):
  """Operations the storefront needs from an external payment provider."""

  @abc.abstractmethod
  async def create_checkout_session(
      self, request: CheckoutSessionRequest
  ) -> CheckoutSessionHandle:
    """Creates a hosted checkout session and returns its redirect target.

    Raises:
      GatewayUnavailableError: The provider could not be reached.
      GatewayRejectedError: The provider refused the session.
    """

  @abc.abstractmethod
  async def find_session_metadata(
      self, payment_reference: str
  ) -> Optional[SessionMetadata]:
    """Returns the metadata of the session that produced a payment, if any."""

  @abc.abstractmethod
  def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
    """Verifies a raw webhook body against its signature and decodes it.

    Raises:
      SignatureInvalidError: The signature does not match the payload.
    """


class StripeGateway(PaymentGateway):
  """Stripe Checkout implementation of `PaymentGateway`."""

  def __init__(self, settings: GatewaySettings):
    self.settings = settings

  def build_line_items(
      self, request: CheckoutSessionRequest
  ) -> List[Dict[str, Any]]:
    """Converts checkout lines into Stripe `line_items` with surcharged prices."""
    return [
        {
            "price_data": {
                "currency": request.currency,
                "product_data": {"name": line.name},
                "unit_amount": amounts.gateway_unit_amount(
                    line.unit_price, self.settings.minor_units
                ),
            },
            "quantity": line.quantity,
        }
        for line in request.lines
    ]

  async def create_checkout_session(
      self, request: CheckoutSessionRequest
  ) -> CheckoutSessionHandle:
    order_id = request.metadata.order_id
    logger.info("Creating checkout session for order %s", order_id)
    try:
      session = await asyncio.to_thread(
          stripe.checkout.Session.create,
          api_key=self.settings.secret_key,
          idempotency_key=f"checkout-{order_id}",
          line_items=self.build_line_items(request),
          mode="payment",
          success_url=request.success_url,
          cancel_url=request.cancel_url,
          metadata=request.metadata.model_dump(),
      )
    except stripe.APIConnectionError as e:
      logger.error("Stripe unreachable for order %s: %s", order_id, e)
      raise GatewayUnavailableError("Payment gateway unavailable") from e
    except stripe.StripeError as e:
      logger.error("Stripe rejected session for order %s: %s", order_id, e)
      raise GatewayRejectedError(
          e.user_message or "Payment gateway rejected the checkout session"
      ) from e
    return CheckoutSessionHandle(id=session.id, url=session.url)

  async def find_session_metadata(
      self, payment_reference: str
  ) -> Optional[SessionMetadata]:
    try:
      sessions = await asyncio.to_thread(
          stripe.checkout.Session.list,
          api_key=self.settings.secret_key,
          payment_intent=payment_reference,
      )
    except stripe.APIConnectionError as e:
      raise GatewayUnavailableError("Payment gateway unavailable") from e
    except stripe.StripeError as e:
      raise GatewayRejectedError(
          f"Session lookup failed for {payment_reference}"
      ) from e

    if not sessions.data:
      return None
    metadata = sessions.data[0].metadata or {}
    if "order_id" not in metadata or "user_id" not in metadata:
      logger.warning(
          "Session for payment %s carries no order metadata", payment_reference
      )
      return None
    return SessionMetadata(
        order_id=metadata["order_id"], user_id=metadata["user_id"]
    )

  def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
    if not self.settings.webhook_secret:
      raise SignatureInvalidError("Webhook signing secret is not configured")
    if not signature:
      raise SignatureInvalidError("Missing webhook signature")
    try:
      event = stripe.Webhook.construct_event(
          payload, signature, self.settings.webhook_secret
      )
    except stripe.SignatureVerificationError as e:
      raise SignatureInvalidError("Webhook signature verification failed") from e
    except ValueError as e:
      raise InvalidRequestError("Webhook payload is not valid JSON") from e
    return decode_event(event)
