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

"""Cart routes for the GreenCart server."""

from typing import Any

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends

from greencart import dependencies
from greencart.models import CartUpdateRequest
from greencart.services.cart_service import CartService

router = APIRouter(prefix="/api/cart")


@router.get("", response_model=dict[str, Any], operation_id="get_cart")
async def get_cart(
    user_id: str = Depends(dependencies.authenticated_user),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> dict[str, Any]:
  """Get the caller's cart."""
  cart = await cart_service.get_cart(user_id)
  return {"success": True, "cart": cart.model_dump()}


@router.post(
    "/update", response_model=dict[str, Any], operation_id="update_cart"
)
async def update_cart(
    cart_req: CartUpdateRequest = Body(...),
    user_id: str = Depends(dependencies.authenticated_user),
    cart_service: CartService = Depends(dependencies.get_cart_service),
) -> dict[str, Any]:
  """Replace the caller's cart."""
  cart = await cart_service.update_cart(
      user_id, cart_req.cart_items, cart_req.version
  )
  return {"success": True, "message": "Cart Updated", "cart": cart.model_dump()}
