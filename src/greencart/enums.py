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

"""Enumerations for the GreenCart order server.

This module defines the payment modes and order status labels used throughout
the server application.
"""

import enum


class PaymentType(str, enum.Enum):
  COD = "COD"
  ONLINE = "Online"


class OrderStatus(str, enum.Enum):
  PLACED = "Order Placed"

