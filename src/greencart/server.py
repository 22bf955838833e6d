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

"""GreenCart Order Server (Python/FastAPI)."""

import logging
import sys
from typing import Sequence

from absl import app as absl_app
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.responses import PlainTextResponse
import uvicorn

from greencart import config
from greencart.exceptions import StorefrontError
from greencart.routes.cart import router as cart_router
from greencart.routes.order import router as order_router
from greencart.routes.webhook import router as webhook_router

# --- App Setup ---

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="GreenCart Order Service",
    version="1.0.0",
    description="Order placement and payment settlement for the storefront",
    lifespan=config.lifespan,
)


@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError):
  """Converts storefront exceptions into failure JSON responses."""
  del request  # Unused.
  return JSONResponse(
      status_code=exc.status_code,
      content={"success": False, "message": exc.message, "code": exc.code},
  )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
  """Reports malformed request bodies in the storefront failure shape."""
  del request  # Unused.
  problems = []
  for error in exc.errors():
    location = ".".join(str(part) for part in error["loc"] if part != "body")
    problems.append(f"{location}: {error['msg']}" if location else error["msg"])
  return JSONResponse(
      status_code=422,
      content={
          "success": False,
          "message": "; ".join(problems) or "Invalid data",
          "code": "VALIDATION_ERROR",
      },
  )


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
  return "API is Working"


app.include_router(order_router)
app.include_router(cart_router)
app.include_router(webhook_router)


def main(argv: Sequence[str]) -> None:
  """Main entry point for the GreenCart Order Server."""
  del argv  # Unused.

  if (
      config.FLAGS.products_db_path is None
      or config.FLAGS.transactions_db_path is None
      or config.FLAGS.port is None
  ):
    logger.error(
        "Both --products_db_path, --transactions_db_path, and --port must be"
        " provided."
    )
    print("\nUsage:")
    print(config.FLAGS.main_module_help())
    sys.exit(1)

  if not config.FLAGS.stripe_secret_key or not config.FLAGS.stripe_webhook_secret:
    logger.warning(
        "Stripe credentials are not configured; online payments will fail."
    )

  uvicorn.run(app, host="0.0.0.0", port=config.FLAGS.port)


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
