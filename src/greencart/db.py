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

"""Database management and persistence layer for the GreenCart order server.

This module provides the schema definitions, database session management, and
asynchronous data access helpers used by the server. It utilizes SQLAlchemy with
SQLite (via aiosqlite) and keeps the product catalog in a separate database from
the transactional user, cart, address and order data.

Key features include:
- `DatabaseManager`: Handles asynchronous engine initialization and session
factory
  setup for both 'Products' and 'Transactions' databases.
- WAL Mode: Automatically enables SQLite Write-Ahead Logging so the order API
  and webhook deliveries can write concurrently.
- Declarative Models: Defines tables for products, users (with their cart),
  addresses, orders and processed payment events.
- Data Access Helpers: A suite of asynchronous functions for CRUD operations on
  the database models. Cart and order state changes are single conditional
  statements so concurrent requests cannot lose updates.
"""

import datetime
import logging
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import delete
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import or_
from sqlalchemy import select
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from greencart.enums import OrderStatus
from greencart.enums import PaymentType

logger = logging.getLogger(__name__)

ProductBase = declarative_base()
TransactionBase = declarative_base()


def utc_now() -> str:
  """Returns the current UTC time as a fixed-width ISO-8601 string."""
  return datetime.datetime.now(datetime.timezone.utc).isoformat(
      timespec="microseconds"
  )


class DatabaseManager:
  """Manages database engines and sessions without using global variables."""

  def __init__(self) -> None:
    self.products_engine: Optional[AsyncEngine] = None
    self.transactions_engine: Optional[AsyncEngine] = None
    self.products_session_factory: Optional[sessionmaker] = None
    self.transactions_session_factory: Optional[sessionmaker] = None

  async def init_dbs(self, products_path: str, transactions_path: str) -> None:
    """Initializes database engines and creates tables."""
    self.products_engine, self.products_session_factory = await _open(
        products_path, ProductBase
    )
    self.transactions_engine, self.transactions_session_factory = await _open(
        transactions_path, TransactionBase
    )

  async def close(self) -> None:
    """Closes all database engines."""
    if self.products_engine:
      await self.products_engine.dispose()
    if self.transactions_engine:
      await self.transactions_engine.dispose()


async def _open(path: str, base) -> tuple[AsyncEngine, sessionmaker]:
  """Creates an engine in WAL mode, its tables and a session factory."""
  engine = create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)

  async with engine.connect() as conn:
    await conn.execute(text("PRAGMA journal_mode=WAL"))

  async with engine.begin() as conn:
    await conn.run_sync(base.metadata.create_all)

  factory = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
  return engine, factory


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


class Product(ProductBase):
  __tablename__ = "products"

  id = Column(String, primary_key=True)
  name = Column(String)
  description = Column(JSON, default=list)
  price = Column(Integer)
  offer_price = Column(Integer)
  category = Column(String)
  image = Column(JSON, default=list)
  in_stock = Column(Boolean, default=True)


class User(TransactionBase):
  __tablename__ = "users"

  id = Column(String, primary_key=True)
  name = Column(String)
  email = Column(String, unique=True)
  # Product id -> quantity. Always replaced as a whole document.
  cart_items = Column(JSON, default=dict)
  cart_version = Column(Integer, default=0)


class Address(TransactionBase):
  __tablename__ = "addresses"

  id = Column(String, primary_key=True)
  user_id = Column(String, index=True)
  first_name = Column(String)
  last_name = Column(String)
  email = Column(String)
  street = Column(String)
  city = Column(String)
  state = Column(String)
  zipcode = Column(String)
  country = Column(String)
  phone = Column(String)


class Order(TransactionBase):
  __tablename__ = "orders"

  id = Column(String, primary_key=True)
  user_id = Column(String, index=True)
  items = Column(JSON)
  amount = Column(Integer)
  address_id = Column(String)
  status = Column(String, default=OrderStatus.PLACED.value)
  payment_type = Column(String)
  is_paid = Column(Boolean, default=False)
  created_at = Column(String, index=True)
  updated_at = Column(String)


class ProcessedEvent(TransactionBase):
  __tablename__ = "processed_events"

  id = Column(String, primary_key=True)
  kind = Column(String)
  order_id = Column(String, nullable=True)
  processed_at = Column(String)


# --- Data Access Helpers ---


async def get_products(
    session: AsyncSession, product_ids: Iterable[str]
) -> Dict[str, Product]:
  """Retrieves multiple products by ID in a single query.

  Args:
    session: The products database session.
    product_ids: The IDs to look up. Duplicates are allowed.

  Returns:
    A mapping of product ID to Product for every ID that exists.
  """
  ids = set(product_ids)
  if not ids:
    return {}
  result = await session.execute(select(Product).where(Product.id.in_(ids)))
  return {product.id: product for product in result.scalars().all()}


async def get_user(session: AsyncSession, user_id: str) -> Optional[User]:
  """Retrieves a user by ID."""
  return await session.get(User, user_id)


async def replace_cart(
    session: AsyncSession,
    user_id: str,
    cart_items: Dict[str, int],
    expected_version: Optional[int] = None,
) -> bool:
  """Atomically replaces a user's whole cart document.

  Args:
    session: The transactions database session.
    user_id: The cart owner.
    cart_items: The new product id to quantity mapping.
    expected_version: When given, the replace only applies if the stored cart
      is still at this version.

  Returns:
    True if a row was updated, False if the user is missing or the version
    check failed.
  """
  stmt = (
      update(User)
      .where(User.id == user_id)
      .values(cart_items=cart_items, cart_version=User.cart_version + 1)
  )
  if expected_version is not None:
    stmt = stmt.where(User.cart_version == expected_version)
  result = await session.execute(stmt)
  return result.rowcount > 0


async def clear_cart(session: AsyncSession, user_id: str) -> bool:
  """Empties a user's cart. Returns False if the user does not exist."""
  return await replace_cart(session, user_id, {})


async def get_addresses(
    session: AsyncSession, address_ids: Iterable[str]
) -> Dict[str, Address]:
  """Retrieves multiple addresses by ID in a single query."""
  ids = set(address_ids)
  if not ids:
    return {}
  result = await session.execute(select(Address).where(Address.id.in_(ids)))
  return {address.id: address for address in result.scalars().all()}


async def create_order(
    session: AsyncSession,
    order_id: str,
    user_id: str,
    items: List[Dict[str, Any]],
    amount: int,
    address_id: str,
    payment_type: PaymentType,
) -> Order:
  """Adds a new unpaid order to the session."""
  now = utc_now()
  order = Order(
      id=order_id,
      user_id=user_id,
      items=items,
      amount=amount,
      address_id=address_id,
      status=OrderStatus.PLACED.value,
      payment_type=payment_type.value,
      is_paid=False,
      created_at=now,
      updated_at=now,
  )
  session.add(order)
  return order


async def get_order(session: AsyncSession, order_id: str) -> Optional[Order]:
  """Retrieves an order by ID."""
  return await session.get(Order, order_id)


async def mark_order_paid(session: AsyncSession, order_id: str) -> bool:
  """Sets is_paid on an unpaid order.

  Returns:
    True only if this call moved the order from unpaid to paid.
  """
  stmt = (
      update(Order)
      .where(Order.id == order_id)
      .where(Order.is_paid.is_(False))
      .values(is_paid=True, updated_at=utc_now())
  )
  result = await session.execute(stmt)
  return result.rowcount > 0


async def delete_unpaid_order(session: AsyncSession, order_id: str) -> bool:
  """Deletes an order unless it has been paid. Missing orders are a no-op."""
  stmt = (
      delete(Order)
      .where(Order.id == order_id)
      .where(Order.is_paid.is_(False))
  )
  result = await session.execute(stmt)
  return result.rowcount > 0


async def list_visible_orders(
    session: AsyncSession, user_id: Optional[str] = None
) -> List[Order]:
  """Lists COD orders and paid orders, newest first.

  Args:
    session: The transactions database session.
    user_id: Restricts the listing to one user. None lists every user.

  Returns:
    The visible orders. Pending online orders are never included.
  """
  stmt = select(Order).where(
      or_(
          Order.payment_type == PaymentType.COD.value,
          Order.is_paid.is_(True),
      )
  )
  if user_id is not None:
    stmt = stmt.where(Order.user_id == user_id)
  result = await session.execute(stmt.order_by(Order.created_at.desc()))
  return list(result.scalars().all())


async def delete_stale_pending_orders(
    session: AsyncSession, cutoff: str
) -> List[str]:
  """Deletes unpaid online orders created before the cutoff timestamp.

  Args:
    session: The transactions database session.
    cutoff: A timestamp in the format produced by `utc_now`.

  Returns:
    The IDs of the deleted orders.
  """
  conditions = (
      Order.payment_type == PaymentType.ONLINE.value,
      Order.is_paid.is_(False),
      Order.created_at < cutoff,
  )
  result = await session.execute(select(Order.id).where(*conditions))
  order_ids = list(result.scalars().all())
  if order_ids:
    await session.execute(
        delete(Order).where(Order.id.in_(order_ids)).where(*conditions)
    )
  return order_ids


async def get_processed_event(
    session: AsyncSession, event_id: str
) -> Optional[ProcessedEvent]:
  """Retrieves a processed payment event by ID."""
  return await session.get(ProcessedEvent, event_id)


async def save_processed_event(
    session: AsyncSession,
    event_id: str,
    kind: str,
    order_id: Optional[str] = None,
) -> None:
  """Records a payment event as processed."""
  session.add(
      ProcessedEvent(
          id=event_id,
          kind=kind,
          order_id=order_id,
          processed_at=utc_now(),
      )
  )
