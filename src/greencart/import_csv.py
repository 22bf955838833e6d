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

"""Database initialization script for the GreenCart server.

This script imports catalog, user and address data from CSV files into the
configured SQLite databases. It clears any existing data in the 'products',
'users' and 'addresses' tables before populating them. Orders are left
untouched.

Usage:
  greencart-import-csv --products_db_path=... --transactions_db_path=...
  --data_dir=...
"""

import asyncio
import csv
import logging
import os
import sys

from absl import app as absl_app
from absl import flags
from sqlalchemy import delete

from greencart import config
from greencart import db
from greencart.db import Address
from greencart.db import Product
from greencart.db import User

FLAGS = flags.FLAGS
flags.DEFINE_string(
    "data_dir",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data"),
    "Directory containing products.csv, users.csv and addresses.csv",
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_ADDRESS_COLUMNS = (
    "id",
    "user_id",
    "first_name",
    "last_name",
    "email",
    "street",
    "city",
    "state",
    "zipcode",
    "country",
    "phone",
)


def _read_rows(filename: str) -> list[dict[str, str]]:
  """Reads a CSV file from the data directory; missing files yield no rows."""
  path = os.path.join(FLAGS.data_dir, filename)
  if not os.path.exists(path):
    logger.warning("%s not found, skipping", path)
    return []
  with open(path, "r") as f:
    return list(csv.DictReader(f))


def _split(value: str) -> list[str]:
  return [part.strip() for part in value.split("|") if part.strip()]


async def import_csv_data() -> None:
  """Reads CSV files and populates the database."""
  # Ensure tables exist
  await db.manager.init_dbs(
      config.FLAGS.products_db_path, config.FLAGS.transactions_db_path
  )

  try:
    async with db.manager.products_session_factory() as session:
      logger.info("Clearing existing products...")
      await session.execute(delete(Product))

      logger.info("Importing Products from CSV...")
      session.add_all(
          Product(
              id=row["id"],
              name=row["name"],
              description=_split(row.get("description", "")),
              price=int(row["price"]),
              offer_price=int(row["offer_price"]),
              category=row["category"],
              image=_split(row.get("image", "")),
              in_stock=row.get("in_stock", "true").lower() == "true",
          )
          for row in _read_rows("products.csv")
      )
      await session.commit()

    async with db.manager.transactions_session_factory() as session:
      logger.info("Clearing existing users and addresses...")
      await session.execute(delete(Address))
      await session.execute(delete(User))

      logger.info("Importing Users from CSV...")
      session.add_all(
          User(
              id=row["id"],
              name=row["name"],
              email=row["email"],
              cart_items={},
              cart_version=0,
          )
          for row in _read_rows("users.csv")
      )

      logger.info("Importing Addresses from CSV...")
      session.add_all(
          Address(**{column: row.get(column) for column in _ADDRESS_COLUMNS})
          for row in _read_rows("addresses.csv")
      )
      await session.commit()

    logger.info("Database populated from CSVs.")
  finally:
    await db.manager.close()


def main(argv) -> None:
  """Main entry point for the CSV import script."""
  del argv
  if not config.FLAGS.products_db_path or not config.FLAGS.transactions_db_path:
    print("Error: --products_db_path and --transactions_db_path are required.")
    sys.exit(1)
  asyncio.run(import_csv_data())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
