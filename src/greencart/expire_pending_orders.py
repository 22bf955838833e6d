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

"""Deletes online orders whose checkout was abandoned.

An online order stays pending until the payment gateway reports an outcome. If
the buyer never completes or cancels checkout no webhook arrives, so pending
orders older than --max_age_minutes are removed by this script. There is no
default age; pick one no shorter than the gateway's checkout session expiry.

Usage:
  greencart-expire-pending-orders --transactions_db_path=...
  --max_age_minutes=...
"""

import asyncio
import datetime
import logging
import sys

from absl import app as absl_app
from absl import flags
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker

from greencart import config
from greencart.services import order_service

FLAGS = flags.FLAGS
flags.DEFINE_integer(
    "max_age_minutes", None, "Age after which unpaid online orders expire"
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def expire_pending_orders() -> None:
  """Removes stale unpaid online orders."""
  db_url = f"sqlite+aiosqlite:///{config.FLAGS.transactions_db_path}"
  engine = create_async_engine(db_url, echo=False)
  session_factory = sessionmaker(
      engine, expire_on_commit=False, class_=AsyncSession
  )

  try:
    async with session_factory() as session:
      expired = await order_service.expire_pending_orders(
          session, datetime.timedelta(minutes=FLAGS.max_age_minutes)
      )
    logger.info("Expired %d pending order(s).", len(expired))
  finally:
    await engine.dispose()


def main(argv) -> None:
  """Main entry point for the expiry script."""
  del argv
  if not config.FLAGS.transactions_db_path or FLAGS.max_age_minutes is None:
    print("Error: --transactions_db_path and --max_age_minutes are required.")
    sys.exit(1)
  if FLAGS.max_age_minutes <= 0:
    print("Error: --max_age_minutes must be positive.")
    sys.exit(1)
  asyncio.run(expire_pending_orders())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
