"""Synthesised identifiers for invoices and line items without their own."""

import time
from typing import Callable


class IdFactory:
    """
    Mint ids for a single parse call.

    The millisecond stamp is captured once and a counter makes every SKU
    unique inside the call, so two items minted in the same millisecond
    never collide.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._stamp = int(clock() * 1000)
        self._counter = 0

    def invoice_number(self) -> str:
        return f"INV-{str(self._stamp)[-6:]}"

    def product_id(self) -> str:
        self._counter += 1
        return f"SKU-{self._stamp}-{self._counter}"
