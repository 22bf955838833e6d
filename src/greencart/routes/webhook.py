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

"""Payment gateway webhook route.

The body is read raw: signature verification needs the exact bytes the gateway
signed, so this endpoint must never declare a parsed JSON body.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Header
from fastapi import Request

from greencart import dependencies
from greencart.exceptions import StorefrontError
from greencart.services.webhook_service import WebhookProcessor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/stripe",
    response_model=dict[str, Any],
    operation_id="payment_webhook",
)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    processor: WebhookProcessor = Depends(dependencies.get_webhook_processor),
) -> dict[str, Any]:
  """Payment Webhook Implementation."""
  payload = await request.body()
  try:
    outcome = await processor.handle(payload, stripe_signature)
  except StorefrontError as e:
    # Nobody but the gateway sees the response, so failures go to the logs.
    logger.error("Webhook delivery rejected (%s): %s", e.code, e.message)
    raise
  return {"received": True, "outcome": outcome}
