# 📄 File: billing_engine/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types the billing engine uses to say exactly
# what went wrong (not allowed, too early to bill, payment declined...) instead of generic errors.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy providing specific error types with HTTP status codes,
# error details, and proper serialization for the orchestrator that calls the engine.
# 🔗 Dependencies:
# FastAPI HTTPException, typing, HTTP status constants
# 🔄 Connected Modules / Calls From:
# Domain services, command handlers, payment gateway adapters, tests

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class BillingEngineException(Exception):
    """
    Base exception class for the billing engine.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict()["error"]
        )


# =============================================================================
# GENERIC EXCEPTIONS
# =============================================================================

class ValidationError(BillingEngineException):
    """
    Exception raised for data validation failures.
    Used when input data doesn't meet validation requirements.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if constraint:
            details["constraint"] = constraint

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="VALIDATION_ERROR"
        )


class NotFoundError(BillingEngineException):
    """
    Exception raised when requested resource is not found.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code="NOT_FOUND"
        )


class ExternalServiceError(BillingEngineException):
    """
    Exception raised when external service calls fail.
    Used when the payment gateway cannot be reached or answers garbage.
    """

    def __init__(
        self,
        message: str = "External service error",
        service: Optional[str] = None,
        service_response: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if service:
            details["service"] = service
        if service_response:
            details["service_response"] = service_response

        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
            error_code="EXTERNAL_SERVICE_ERROR"
        )


# =============================================================================
# ACCESS CONTROL EXCEPTIONS
# =============================================================================

class NotAuthorized(BillingEngineException):
    """
    Exception raised when the caller is not in the authorized set
    (or is not the administrator for admin-only operations).
    """

    def __init__(
        self,
        message: str = "Caller is not authorized",
        caller: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if caller:
            details["caller"] = caller
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
            error_code="NOT_AUTHORIZED"
        )


class SystemPaused(BillingEngineException):
    """Exception raised for any mutating operation while the global pause is active."""

    def __init__(
        self,
        message: str = "Billing system is paused",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="SYSTEM_PAUSED"
        )


class ProductPaused(BillingEngineException):
    """Exception raised when a product (or its parent product) is merchant-paused."""

    def __init__(
        self,
        message: str = "Product is paused",
        product_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if product_id:
            details["product_id"] = product_id

        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code="PRODUCT_PAUSED"
        )


# =============================================================================
# SUBSCRIPTION LIFECYCLE EXCEPTIONS
# =============================================================================

class DuplicateActiveSubscription(BillingEngineException):
    """Exception raised when creating over an existing ACTIVE subscription."""

    def __init__(
        self,
        message: str = "An active subscription already exists for this key",
        subscription_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if subscription_id:
            details["subscription_id"] = subscription_id

        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code="DUPLICATE_ACTIVE_SUBSCRIPTION"
        )


class InvalidBillingDay(BillingEngineException):
    """Exception raised when billing day is outside [0, 28]."""

    def __init__(
        self,
        message: str = "Billing day must be between 0 and 28",
        billing_day: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if billing_day is not None:
            details["billing_day"] = billing_day

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="INVALID_BILLING_DAY"
        )


class CyclesExhausted(BillingEngineException):
    """Exception raised when a limited subscription has no billing cycles left."""

    def __init__(
        self,
        message: str = "All billing cycles have been charged",
        subscription_id: Optional[str] = None,
        successful_payments_count: Optional[int] = None,
        total_cycles: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if subscription_id:
            details["subscription_id"] = subscription_id
        if successful_payments_count is not None:
            details["successful_payments_count"] = successful_payments_count
        if total_cycles is not None:
            details["total_cycles"] = total_cycles

        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code="CYCLES_EXHAUSTED"
        )


class SubscriptionNotEligible(BillingEngineException):
    """Exception raised when the subscription status forbids the requested operation."""

    def __init__(
        self,
        message: str = "Subscription is not eligible for this operation",
        subscription_id: Optional[str] = None,
        subscription_status: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if subscription_id:
            details["subscription_id"] = subscription_id
        if subscription_status:
            details["subscription_status"] = subscription_status
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code="SUBSCRIPTION_NOT_ELIGIBLE"
        )


class TooEarlyToBill(BillingEngineException):
    """Exception raised when a charge is attempted before next_billing_time."""

    def __init__(
        self,
        message: str = "Subscription is not due for billing yet",
        subscription_id: Optional[str] = None,
        next_billing_time: Optional[int] = None,
        now: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if subscription_id:
            details["subscription_id"] = subscription_id
        if next_billing_time is not None:
            details["next_billing_time"] = next_billing_time
        if now is not None:
            details["now"] = now

        super().__init__(
            message=message,
            status_code=status.HTTP_425_TOO_EARLY,
            details=details,
            error_code="TOO_EARLY_TO_BILL"
        )


# =============================================================================
# PAYMENT EXCEPTIONS
# =============================================================================

class OverchargeAttempt(BillingEngineException):
    """Exception raised when a charge would exceed the subscription's price per cycle."""

    def __init__(
        self,
        message: str = "Charge exceeds price per cycle",
        requested_value: Optional[int] = None,
        price_per_cycle: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if requested_value is not None:
            details["requested_value"] = requested_value
        if price_per_cycle is not None:
            details["price_per_cycle"] = price_per_cycle

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="OVERCHARGE_ATTEMPT"
        )


class PaymentFailed(BillingEngineException):
    """Exception raised when the payment gateway declines a charge."""

    def __init__(
        self,
        message: str = "Payment failed",
        rail: Optional[str] = None,
        currency_used: Optional[str] = None,
        amount: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if rail:
            details["rail"] = rail
        if currency_used:
            details["currency_used"] = currency_used
        if amount is not None:
            details["amount"] = amount

        super().__init__(
            message=message,
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details=details,
            error_code="PAYMENT_FAILED"
        )


class SettlementLegFailed(BillingEngineException):
    """
    Exception raised when one leg of a pause settlement is declined.

    ``merchant_leg_settled`` tells the orchestrator whether the merchant
    leg went through before the fee leg failed.
    """

    def __init__(
        self,
        message: str = "Pause settlement leg failed",
        leg: Optional[str] = None,
        merchant_leg_settled: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if leg:
            details["leg"] = leg
        details["merchant_leg_settled"] = merchant_leg_settled

        self.leg = leg
        self.merchant_leg_settled = merchant_leg_settled

        super().__init__(
            message=message,
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details=details,
            error_code="SETTLEMENT_LEG_FAILED"
        )


# =============================================================================
# EXCEPTION UTILITIES
# =============================================================================

def exception_to_dict(exception: Exception) -> Dict[str, Any]:
    """
    Convert any exception to dictionary format.

    Args:
        exception: Exception to convert

    Returns:
        Dict: Exception data as dictionary
    """
    if isinstance(exception, BillingEngineException):
        return exception.to_dict()

    return {
        "error": {
            "code": exception.__class__.__name__.upper(),
            "message": str(exception),
            "details": {},
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
        }
    }


def is_client_error(exception: Exception) -> bool:
    """
    Check if exception represents a client error (4xx).

    Client errors are precondition failures the orchestrator caused;
    anything else is a fault on the engine or gateway side.
    """
    if isinstance(exception, (BillingEngineException, HTTPException)):
        return 400 <= exception.status_code < 500

    return False
