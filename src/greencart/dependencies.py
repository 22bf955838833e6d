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

"""FastAPI dependencies for the GreenCart server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Caller identity (User-Id header set by the auth layer, Seller-Token).
- Settings and payment gateway construction.
- Service instantiation (OrderService, CartService, WebhookProcessor).
- Database session management (Products and Transactions DBs).
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession

from greencart import config
from greencart import db
from greencart.exceptions import ForbiddenError
from greencart.exceptions import StorefrontError
from greencart.exceptions import UnauthorizedError
from greencart.services.cart_service import CartService
from greencart.services.gateway import PaymentGateway
from greencart.services.gateway import StripeGateway
from greencart.services.order_service import OrderService
from greencart.services.webhook_service import WebhookProcessor


def get_settings() -> config.StorefrontSettings:
  """Dependency provider for the storefront settings."""
  return config.get_settings()


async def authenticated_user(
    user_id: Optional[str] = Header(None, alias="User-Id"),
) -> str:
  """Returns the caller's user ID as established by the auth layer."""
  if not user_id:
    raise UnauthorizedError()
  return user_id


async def verify_seller_token(
    seller_token: Optional[str] = Header(None, alias="Seller-Token"),
    settings: config.StorefrontSettings = Depends(get_settings),
) -> None:
  """Verifies the token for seller endpoints."""
  if not settings.seller_token:
    raise StorefrontError("Seller token not configured")

  if not seller_token or seller_token != settings.seller_token:
    raise ForbiddenError()


def get_payment_gateway(
    settings: config.StorefrontSettings = Depends(get_settings),
) -> PaymentGateway:
  """Dependency provider for the payment gateway adapter."""
  return StripeGateway(settings.gateway)


async def get_products_db() -> AsyncGenerator[AsyncSession, None]:
  """Dependency provider for Products DB session."""
  async with db.manager.products_session_factory() as session:
    yield session


async def get_transactions_db() -> AsyncGenerator[AsyncSession, None]:
  """Dependency provider for Transactions DB session."""
  async with db.manager.transactions_session_factory() as session:
    yield session


def get_order_service(
    products_session: AsyncSession = Depends(get_products_db),
    transactions_session: AsyncSession = Depends(get_transactions_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: config.StorefrontSettings = Depends(get_settings),
) -> OrderService:
  """Dependency provider for OrderService."""
  return OrderService(products_session, transactions_session, gateway, settings)


def get_cart_service(
    transactions_session: AsyncSession = Depends(get_transactions_db),
) -> CartService:
  """Dependency provider for CartService."""
  return CartService(transactions_session)


def get_webhook_processor(
    transactions_session: AsyncSession = Depends(get_transactions_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> WebhookProcessor:
  """Dependency provider for WebhookProcessor."""
  return WebhookProcessor(transactions_session, gateway)
