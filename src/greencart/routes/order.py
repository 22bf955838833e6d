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

"""Order placement and listing routes for the GreenCart server."""

from typing import Any, Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Header
from fastapi import Request

from greencart import dependencies
from greencart.models import PlaceOrderRequest
from greencart.services.order_service import OrderService

router = APIRouter(prefix="/api/order")


@router.post(
    "/cod",
    response_model=dict[str, Any],
    operation_id="place_order_cod",
)
async def place_order_cod(
    order_req: PlaceOrderRequest = Body(...),
    user_id: str = Depends(dependencies.authenticated_user),
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> dict[str, Any]:
  """Place a cash-on-delivery order."""
  await order_service.place_order_cod(
      user_id, order_req.items, order_req.address
  )
  return {"success": True, "message": "Order Placed Successfully"}


@router.post(
    "/online",
    response_model=dict[str, Any],
    operation_id="place_order_online",
)
@router.post("/stripe", response_model=dict[str, Any], include_in_schema=False)
async def place_order_online(
    request: Request,
    order_req: PlaceOrderRequest = Body(...),
    origin: Optional[str] = Header(None),
    user_id: str = Depends(dependencies.authenticated_user),
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> dict[str, Any]:
  """Place an online order and return the checkout session URL."""
  url = await order_service.place_order_online(
      user_id,
      order_req.items,
      order_req.address,
      origin or str(request.base_url),
  )
  return {"success": True, "url": url}


@router.get(
    "/user",
    response_model=dict[str, Any],
    operation_id="get_user_orders",
)
async def get_user_orders(
    user_id: str = Depends(dependencies.authenticated_user),
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> dict[str, Any]:
  """List the caller's placed and paid orders."""
  orders = await order_service.list_user_orders(user_id)
  return {
      "success": True,
      "orders": [order.model_dump(mode="json") for order in orders],
  }


@router.get(
    "/seller",
    response_model=dict[str, Any],
    operation_id="get_all_orders",
    dependencies=[Depends(dependencies.verify_seller_token)],
)
async def get_all_orders(
    order_service: OrderService = Depends(dependencies.get_order_service),
) -> dict[str, Any]:
  """List placed and paid orders of every user."""
  orders = await order_service.list_all_orders()
  return {
      "success": True,
      "orders": [order.model_dump(mode="json") for order in orders],
  }
