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

"""Request, response and payment models for the GreenCart order server.

Payment gateway events are decoded into a closed set of variants
(`PaymentSucceeded`, `PaymentFailed`, `UnknownPaymentEvent`) discriminated by
`kind`, so reconciliation code never inspects raw provider payloads.
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

# --- Requests ---


class OrderLineRequest(BaseModel):
  """A single line of a submitted order."""

  product: str
  quantity: int


class PlaceOrderRequest(BaseModel):
  """Body of the COD and online order placement endpoints."""

  items: List[OrderLineRequest] = []
  address: Optional[str] = None


class CartUpdateRequest(BaseModel):
  """Whole-cart replacement. `version` enables the optimistic check."""

  cart_items: Dict[str, int]
  version: Optional[int] = None


# --- Gateway ---


class CheckoutLine(BaseModel):
  """A priced line sent to the payment gateway."""

  name: str
  unit_price: int
  quantity: int


class SessionMetadata(BaseModel):
  """Correlates a checkout session to the order that created it."""

  order_id: str
  user_id: str


class CheckoutSessionRequest(BaseModel):
  lines: List[CheckoutLine]
  currency: str
  success_url: str
  cancel_url: str
  metadata: SessionMetadata


class CheckoutSessionHandle(BaseModel):
  id: str
  url: str


class PaymentSucceeded(BaseModel):
  kind: Literal["succeeded"] = "succeeded"
  event_id: str
  payment_reference: str


class PaymentFailed(BaseModel):
  kind: Literal["failed"] = "failed"
  event_id: str
  payment_reference: str


class UnknownPaymentEvent(BaseModel):
  kind: Literal["unknown"] = "unknown"
  event_id: str
  event_type: str


PaymentEvent = Annotated[
    Union[PaymentSucceeded, PaymentFailed, UnknownPaymentEvent],
    Field(discriminator="kind"),
]

# --- Responses ---


class ProductView(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  id: str
  name: str
  category: Optional[str] = None
  price: Optional[int] = None
  offer_price: int
  image: Optional[List[str]] = None


class AddressView(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  id: str
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  email: Optional[str] = None
  street: Optional[str] = None
  city: Optional[str] = None
  state: Optional[str] = None
  zipcode: Optional[str] = None
  country: Optional[str] = None
  phone: Optional[str] = None


class OrderItemView(BaseModel):
  product_id: str
  quantity: int
  # None when the product has since been removed from the catalog.
  product: Optional[ProductView] = None


class OrderView(BaseModel):
  id: str
  user_id: str
  items: List[OrderItemView]
  amount: int
  address_id: str
  address: Optional[AddressView] = None
  status: str
  payment_type: str
  is_paid: bool
  created_at: str
  updated_at: Optional[str] = None


class CartView(BaseModel):
  cart_items: Dict[str, int]
  version: int
