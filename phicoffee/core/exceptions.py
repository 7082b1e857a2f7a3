# phicoffee/core/exceptions.py
"""
Error taxonomy for the ordering backend.

  - OrderValidationError : malformed input, rejected before any external call
  - UnknownProductError  : selection refers to a product outside the catalog
  - UpstreamError        : Sheets / Telegram / Storage call failed
  - RowDecodeError       : a stored row does not match its column layout
  - CatalogConfigError   : catalog / slot mapping is inconsistent at startup
"""


class OrderError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderValidationError(OrderError):
    pass


class UnknownProductError(OrderValidationError):
    def __init__(self, product_key: str):
        super().__init__(f"Unknown coffee type: {product_key}")
        self.product_key = product_key


class UpstreamError(OrderError):
    """
    Opaque failure of an external service.

    `step` names the submission step that failed
    ("upload_proof", "append_row", "fetch_order", "notify", "append_feedback").
    """

    def __init__(self, message: str, step: str):
        super().__init__(message)
        self.step = step


class RowDecodeError(OrderError):
    pass


class CatalogConfigError(OrderError):
    pass
