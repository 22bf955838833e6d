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

"""Shared configuration and startup logic for the GreenCart server.

Secrets and gateway credentials are read once from flags (whose defaults come
from the environment) into explicit settings objects. Those objects are
injected into the services; nothing below the routes reads flags directly.
"""

import contextlib
import os
from typing import Optional

from absl import flags
from fastapi import FastAPI
from pydantic import BaseModel

from greencart import db

FLAGS = flags.FLAGS

# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string("products_db_path", None, "Path to products DB")
  flags.DEFINE_string("transactions_db_path", None, "Path to transactions DB")
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string(
      "stripe_secret_key",
      os.environ.get("STRIPE_SECRET_KEY"),
      "Secret API key for the Stripe account",
  )
  flags.DEFINE_string(
      "stripe_webhook_secret",
      os.environ.get("STRIPE_WEBHOOK_SECRET"),
      "Signing secret of the Stripe webhook endpoint",
  )
  flags.DEFINE_string(
      "currency",
      os.environ.get("CURRENCY", "usd"),
      "ISO currency code charged at checkout",
  )
  flags.DEFINE_string(
      "seller_token",
      os.environ.get("SELLER_TOKEN"),
      "Token required by the seller order listing",
  )
except flags.DuplicateFlagError:
  pass


class GatewaySettings(BaseModel):
  """Credentials and conventions of the payment gateway account."""

  secret_key: str = ""
  webhook_secret: str = ""
  currency: str = "usd"
  # Minor units per whole currency unit (100 for two-decimal currencies).
  minor_units: int = 100


class StorefrontSettings(BaseModel):
  gateway: GatewaySettings = GatewaySettings()
  seller_token: Optional[str] = None


def get_settings() -> StorefrontSettings:
  """Builds the settings objects from the parsed flags."""
  if not FLAGS.is_parsed():
    return StorefrontSettings()
  return StorefrontSettings(
      gateway=GatewaySettings(
          secret_key=FLAGS.stripe_secret_key or "",
          webhook_secret=FLAGS.stripe_webhook_secret or "",
          currency=FLAGS.currency,
      ),
      seller_token=FLAGS.seller_token,
  )


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Shared lifespan manager for initializing databases."""
  del app  # Unused.
  # In tests the flags are usually unset; sessions are provided by overrides.
  if (
      FLAGS.is_parsed()
      and FLAGS.products_db_path
      and FLAGS.transactions_db_path
  ):
    await db.manager.init_dbs(
        FLAGS.products_db_path, FLAGS.transactions_db_path
    )
  yield
  await db.manager.close()
