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

"""Tests for the Stripe payment gateway adapter."""

import asyncio
import hashlib
import hmac
import json
import time
from unittest import mock

from absl.testing import absltest
import stripe

from greencart.config import GatewaySettings
from greencart.exceptions import GatewayRejectedError
from greencart.exceptions import GatewayUnavailableError
from greencart.exceptions import InvalidRequestError
from greencart.exceptions import SignatureInvalidError
from greencart.models import CheckoutLine
from greencart.models import CheckoutSessionRequest
from greencart.models import PaymentFailed
from greencart.models import PaymentSucceeded
from greencart.models import SessionMetadata
from greencart.models import UnknownPaymentEvent
from greencart.services import gateway

WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET) -> str:
  """Builds a Stripe-Signature header value for the payload."""
  timestamp = int(time.time())
  signature = hmac.new(
      secret.encode("utf-8"),
      f"{timestamp}.{payload}".encode("utf-8"),
      hashlib.sha256,
  ).hexdigest()
  return f"t={timestamp},v1={signature}"


def event_payload(event_id: str, event_type: str, intent_id: str) -> str:
  return json.dumps({
      "id": event_id,
      "object": "event",
      "type": event_type,
      "data": {"object": {"id": intent_id, "object": "payment_intent"}},
  })


def checkout_request() -> CheckoutSessionRequest:
  return CheckoutSessionRequest(
      lines=[
          CheckoutLine(name="Potato 500g", unit_price=100, quantity=2),
          CheckoutLine(name="Tomato 1kg", unit_price=33, quantity=1),
      ],
      currency="usd",
      success_url="https://shop.example/loader?next=my-orders",
      cancel_url="https://shop.example/cart",
      metadata=SessionMetadata(order_id="order-1", user_id="user-1"),
  )


class DecodeEventTest(absltest.TestCase):

  def test_succeeded(self):
    event = gateway.decode_event(
        json.loads(event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1"))
    )
    self.assertEqual(
        event, PaymentSucceeded(event_id="evt_1", payment_reference="pi_1")
    )

  def test_failed(self):
    event = gateway.decode_event(
        json.loads(event_payload("evt_2", gateway.FAILED_EVENT, "pi_2"))
    )
    self.assertEqual(
        event, PaymentFailed(event_id="evt_2", payment_reference="pi_2")
    )

  def test_unknown_type_is_preserved(self):
    event = gateway.decode_event(
        json.loads(event_payload("evt_3", "charge.refunded", "ch_1"))
    )
    self.assertIsInstance(event, UnknownPaymentEvent)
    self.assertEqual(event.event_type, "charge.refunded")


class ConstructEventTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.gateway = gateway.StripeGateway(
        GatewaySettings(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
    )

  def test_valid_signature(self):
    payload = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1")
    event = self.gateway.construct_event(
        payload.encode("utf-8"), sign_payload(payload)
    )
    self.assertEqual(
        event, PaymentSucceeded(event_id="evt_1", payment_reference="pi_1")
    )

  def test_wrong_secret_is_rejected(self):
    payload = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1")
    with self.assertRaises(SignatureInvalidError):
      self.gateway.construct_event(
          payload.encode("utf-8"), sign_payload(payload, "whsec_other")
      )

  def test_tampered_payload_is_rejected(self):
    payload = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1")
    signature = sign_payload(payload)
    tampered = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_other")
    with self.assertRaises(SignatureInvalidError):
      self.gateway.construct_event(tampered.encode("utf-8"), signature)

  def test_missing_signature_is_rejected(self):
    payload = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1")
    with self.assertRaises(SignatureInvalidError):
      self.gateway.construct_event(payload.encode("utf-8"), None)

  def test_unconfigured_secret_is_rejected(self):
    unconfigured = gateway.StripeGateway(GatewaySettings())
    payload = event_payload("evt_1", gateway.SUCCEEDED_EVENT, "pi_1")
    with self.assertRaises(SignatureInvalidError):
      unconfigured.construct_event(
          payload.encode("utf-8"), sign_payload(payload)
      )

  def test_signed_garbage_is_invalid_request(self):
    payload = "not json"
    with self.assertRaises(InvalidRequestError):
      self.gateway.construct_event(
          payload.encode("utf-8"), sign_payload(payload)
      )


class CheckoutSessionTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.gateway = gateway.StripeGateway(
        GatewaySettings(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
    )

  def test_build_line_items(self):
    line_items = self.gateway.build_line_items(checkout_request())
    self.assertEqual(
        line_items[0],
        {
            "price_data": {
                "currency": "usd",
                "product_data": {"name": "Potato 500g"},
                "unit_amount": 10200,
            },
            "quantity": 2,
        },
    )
    self.assertEqual(line_items[1]["price_data"]["unit_amount"], 3366)

  def test_create_checkout_session(self):
    created = mock.Mock(id="cs_1", url="https://checkout.stripe.test/cs_1")
    with mock.patch.object(
        stripe.checkout.Session, "create", return_value=created
    ) as create:
      handle = asyncio.run(
          self.gateway.create_checkout_session(checkout_request())
      )

    self.assertEqual(handle.id, "cs_1")
    self.assertEqual(handle.url, "https://checkout.stripe.test/cs_1")
    kwargs = create.call_args.kwargs
    self.assertEqual(kwargs["api_key"], "sk_test")
    self.assertEqual(kwargs["idempotency_key"], "checkout-order-1")
    self.assertEqual(kwargs["mode"], "payment")
    self.assertEqual(
        kwargs["metadata"], {"order_id": "order-1", "user_id": "user-1"}
    )
    self.assertEqual(kwargs["cancel_url"], "https://shop.example/cart")
    self.assertLen(kwargs["line_items"], 2)

  def test_connection_error_is_unavailable(self):
    with mock.patch.object(
        stripe.checkout.Session,
        "create",
        side_effect=stripe.APIConnectionError("connection refused"),
    ):
      with self.assertRaises(GatewayUnavailableError):
        asyncio.run(self.gateway.create_checkout_session(checkout_request()))

  def test_stripe_error_is_rejected(self):
    with mock.patch.object(
        stripe.checkout.Session,
        "create",
        side_effect=stripe.StripeError("Invalid currency"),
    ):
      with self.assertRaises(GatewayRejectedError) as cm:
        asyncio.run(self.gateway.create_checkout_session(checkout_request()))
    self.assertEqual(cm.exception.status_code, 502)


class FindSessionMetadataTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.gateway = gateway.StripeGateway(GatewaySettings(secret_key="sk_test"))

  def test_returns_metadata_of_matching_session(self):
    session = mock.Mock(metadata={"order_id": "order-1", "user_id": "user-1"})
    with mock.patch.object(
        stripe.checkout.Session,
        "list",
        return_value=mock.Mock(data=[session]),
    ) as list_sessions:
      metadata = asyncio.run(self.gateway.find_session_metadata("pi_1"))

    self.assertEqual(
        metadata, SessionMetadata(order_id="order-1", user_id="user-1")
    )
    self.assertEqual(list_sessions.call_args.kwargs["payment_intent"], "pi_1")

  def test_no_session(self):
    with mock.patch.object(
        stripe.checkout.Session, "list", return_value=mock.Mock(data=[])
    ):
      self.assertIsNone(asyncio.run(self.gateway.find_session_metadata("pi_1")))

  def test_session_without_metadata(self):
    session = mock.Mock(metadata={})
    with mock.patch.object(
        stripe.checkout.Session,
        "list",
        return_value=mock.Mock(data=[session]),
    ):
      self.assertIsNone(asyncio.run(self.gateway.find_session_metadata("pi_1")))


if __name__ == "__main__":
  absltest.main()
