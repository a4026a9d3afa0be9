# storefront/errors.py


class StorefrontError(Exception):
    """Recoverable domain failure surfaced to the shopper."""

    code = "STOREFRONT_ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InsufficientStock(StorefrontError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_id: int, stock: int) -> None:
        super().__init__(f"Not enough stock for product {product_id} (available: {stock})")
        self.product_id = product_id
        self.stock = stock


class LineNotFound(StorefrontError):
    code = "LINE_NOT_FOUND"
    status_code = 404

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} is not in the cart")
        self.product_id = product_id


class EmptyCart(StorefrontError):
    code = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class SessionInvalid(StorefrontError):
    code = "SESSION_INVALID"
    status_code = 410


class OrderSubmissionFailed(StorefrontError):
    code = "ORDER_SUBMISSION_FAILED"
    status_code = 502


class GeolocationDenied(StorefrontError):
    code = "GEOLOCATION_DENIED"

    def __init__(self) -> None:
        super().__init__("Location permission denied")


class PaymentDetailsMissing(StorefrontError):
    code = "PAYMENT_DETAILS_MISSING"
    status_code = 422

    def __init__(self, fields) -> None:
        super().__init__("Missing card details: " + ", ".join(fields))
        self.fields = list(fields)


class SubmissionInProgress(StorefrontError):
    code = "SUBMISSION_IN_PROGRESS"
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Payment is already being processed")
