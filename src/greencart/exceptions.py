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

"""Custom exceptions for the GreenCart order server."""


class StorefrontError(Exception):
  """Base class for all storefront exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class InvalidRequestError(StorefrontError):
  """Raised when the request is invalid (e.g. missing address or items)."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_REQUEST", status_code=400)


class UnauthorizedError(StorefrontError):
  """Raised when the caller's identity is missing."""

  def __init__(self, message: str = "Not Authorized"):
    super().__init__(message, code="UNAUTHORIZED", status_code=401)


class ForbiddenError(StorefrontError):
  """Raised when the caller lacks the credentials an endpoint requires."""

  def __init__(self, message: str = "Not Authorized"):
    super().__init__(message, code="FORBIDDEN", status_code=403)


class ResourceNotFoundError(StorefrontError):
  """Raised when a requested resource is not found."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class ProductNotFoundError(StorefrontError):
  """Raised when an order references a product missing from the catalog."""

  def __init__(self, product_id: str):
    self.product_id = product_id
    super().__init__(
        f"Product {product_id} not found",
        code="PRODUCT_NOT_FOUND",
        status_code=404,
    )


class CartConflictError(StorefrontError):
  """Raised when a cart was replaced concurrently since it was read."""

  def __init__(self, message: str):
    super().__init__(message, code="CART_CONFLICT", status_code=409)


class GatewayUnavailableError(StorefrontError):
  """Raised when the payment gateway cannot be reached."""

  def __init__(self, message: str):
    super().__init__(message, code="GATEWAY_UNAVAILABLE", status_code=503)


class GatewayRejectedError(StorefrontError):
  """Raised when the payment gateway refuses a request."""

  def __init__(self, message: str):
    super().__init__(message, code="GATEWAY_REJECTED", status_code=502)


class SignatureInvalidError(StorefrontError):
  """Raised when a webhook payload fails signature verification."""

  def __init__(self, message: str):
    super().__init__(message, code="SIGNATURE_INVALID", status_code=400)


class AmountMismatchError(StorefrontError):
  """Raised when per-line gateway charges disagree with the order amount."""

  def __init__(self, order_amount: int, charged_amount: int):
    self.order_amount = order_amount
    self.charged_amount = charged_amount
    super().__init__(
        f"Gateway charge {charged_amount} does not match order amount"
        f" {order_amount} (minor units)",
        code="AMOUNT_MISMATCH",
        status_code=500,
    )
