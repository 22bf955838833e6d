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

"""Utility script to dump stored orders and processed payment events.

This script reads from the configured transactions SQLite database and prints
every order, including pending online orders that the listing endpoints hide.
It can optionally print the processed webhook event ledger as well. It is
useful for debugging payment reconciliation.

Usage:
  greencart-dump-orders --transactions_db_path=... [--show_events]
"""

import asyncio
import json
import sys

from absl import app as absl_app
from absl import flags
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker

from greencart import config
from greencart.db import Order
from greencart.db import ProcessedEvent

FLAGS = flags.FLAGS
flags.DEFINE_bool("show_events", False, "Show processed webhook events")


async def dump_orders():
  """Queries the database and prints all orders."""
  if not config.FLAGS.transactions_db_path:
    print("Error: --transactions_db_path is required.")
    sys.exit(1)

  db_url = f"sqlite+aiosqlite:///{config.FLAGS.transactions_db_path}"
  engine = create_async_engine(db_url, echo=False)
  session_factory = sessionmaker(
      engine, expire_on_commit=False, class_=AsyncSession
  )

  try:
    async with session_factory() as session:
      print("=== ORDERS ===")
      result = await session.execute(
          select(Order).order_by(Order.created_at)
      )
      orders = result.scalars().all()

      if not orders:
        print("No orders found.")

      for order in orders:
        state = "paid" if order.is_paid else "unpaid"
        print(f"[{order.created_at}] Order {order.id} ({order.payment_type})")
        print(f"  User: {order.user_id}  Address: {order.address_id}")
        print(f"  Status: {order.status} / {state}  Amount: {order.amount}")
        print(f"  Items: {json.dumps(order.items)}")
        print("-" * 40)

      if FLAGS.show_events:
        print("=== PROCESSED EVENTS ===")
        result = await session.execute(
            select(ProcessedEvent).order_by(ProcessedEvent.processed_at)
        )
        for event in result.scalars().all():
          print(
              f"[{event.processed_at}] {event.id} {event.kind}"
              f" order={event.order_id}"
          )
  finally:
    await engine.dispose()


def main(argv):
  """Main entry point for the order dump script."""
  del argv
  asyncio.run(dump_orders())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
