"""
External integrations for subscription billing.
"""

from .http_payment_gateway import HttpPaymentGateway

__all__ = ["HttpPaymentGateway"]
