# 📄 File: billing_engine/modules/subscription_billing/application/handlers/command_handlers.py
# 🧭 Purpose (Layman Explanation):
# This file contains the "action processors" that take billing commands (create, charge,
# pause, cancel...) and run them through the billing rules, tagging every log line with who
# asked and which orchestrator process it belongs to.
#
# 🧪 Purpose (Technical Summary):
# CQRS command handlers orchestrating the subscription billing domain services. Each handler
# binds the caller and correlation id into the logging context, delegates to one domain
# operation and returns a JSON-friendly result; domain exceptions propagate unchanged.
#
# 🔗 Dependencies:
# - application.commands (command definitions)
# - domain.services (SubscriptionService, PauseSettlementService, MerchantGateway)
# - billing_engine.shared.utils.logging (log_context)
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (BillingEngine container)
# - External billing orchestrator

__all__ = [
    "CreateSubscriptionCommandHandler",
    "ProcessPaymentCommandHandler",
    "PauseSubscriptionCommandHandler",
    "CancelSubscriptionCommandHandler",
    "ActivateSubscriptionCommandHandler",
    "BatchCancelCommandHandler",
    "SetProductPausedCommandHandler",
]

import logging
from typing import Any, Dict

from billing_engine.shared.core.exceptions import BillingEngineException
from billing_engine.shared.utils.logging import log_context

from ..commands.activate_subscription import ActivateSubscriptionCommand
from ..commands.cancel_subscription import BatchCancelCommand, CancelSubscriptionCommand
from ..commands.create_subscription import CreateSubscriptionCommand
from ..commands.pause_subscription import PauseSubscriptionCommand
from ..commands.process_payment import ProcessPaymentCommand
from ..commands.set_product_paused import SetProductPausedCommand
from ...domain.services.merchant_gateway import MerchantGateway
from ...domain.services.pause_settlement import PauseSettlementService
from ...domain.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class CreateSubscriptionCommandHandler:
    """
    Handles subscription creation: record creation plus the first charge.
    """

    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def handle(self, command: CreateSubscriptionCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            logger.info(f"Starting subscription creation for {command.subscription_id}")
            try:
                subscription = await self._subscription_service.create_subscription(
                    caller=command.caller,
                    user=command.user,
                    merchant=command.merchant,
                    subscription_id=command.subscription_id,
                    product_id=command.product_id,
                    parent_product_id=command.parent_product_id,
                    billing_day=command.billing_day,
                    billing_cycle_seconds=command.billing_cycle_seconds,
                    total_cycles=command.total_cycles,
                    price_per_cycle=command.price_per_cycle,
                    unlimited=command.unlimited,
                    initial_payment=command.initial_payment(),
                    process_id=command.process_id
                )
            except BillingEngineException as e:
                logger.warning(f"Subscription creation for {command.subscription_id} rejected: {e.error_code}")
                raise

            return subscription.to_dict()


class ProcessPaymentCommandHandler:
    """
    Handles rebill attempts. The rebill id doubles as correlation id.
    """

    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def handle(self, command: ProcessPaymentCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.rebill_id or None, caller_id=command.caller):
            try:
                subscription = await self._subscription_service.process_payment(
                    caller=command.caller,
                    subscription_id=command.subscription_id,
                    terms=command.terms(),
                    rebill_id=command.rebill_id
                )
            except BillingEngineException as e:
                logger.warning(f"Rebill of {command.subscription_id} rejected: {e.error_code}")
                raise

            return subscription.to_dict()


class PauseSubscriptionCommandHandler:
    """Handles customer pause with settlement."""

    def __init__(self, pause_settlement_service: PauseSettlementService):
        self._pause_settlement_service = pause_settlement_service

    async def handle(self, command: PauseSubscriptionCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            try:
                subscription = await self._pause_settlement_service.pause_with_settlement(
                    caller=command.caller,
                    subscription_id=command.subscription_id,
                    pay_with_token=command.pay_with_token,
                    token_price=command.token_price,
                    process_id=command.process_id
                )
            except BillingEngineException as e:
                logger.warning(f"Pause of {command.subscription_id} rejected: {e.error_code}")
                raise

            return subscription.to_dict()


class CancelSubscriptionCommandHandler:
    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def handle(self, command: CancelSubscriptionCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            changed = await self._subscription_service.cancel_subscription(
                caller=command.caller,
                subscription_id=command.subscription_id,
                process_id=command.process_id
            )
            status = await self._subscription_service.get_status(command.subscription_id)
            return {
                "subscription_id": command.subscription_id,
                "changed": changed,
                "status": status.value,
            }


class ActivateSubscriptionCommandHandler:
    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def handle(self, command: ActivateSubscriptionCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            subscription = await self._subscription_service.activate_subscription(
                caller=command.caller,
                subscription_id=command.subscription_id,
                process_id=command.process_id
            )
            return subscription.to_dict()


class BatchCancelCommandHandler:
    """Handles merchant batch cancellation; partial failures are reported, not raised."""

    def __init__(self, merchant_gateway: MerchantGateway):
        self._merchant_gateway = merchant_gateway

    async def handle(self, command: BatchCancelCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            result = await self._merchant_gateway.batch_cancel(
                caller=command.caller,
                subscription_ids=command.subscription_ids,
                process_id=command.process_id
            )
            return result.model_dump()


class SetProductPausedCommandHandler:
    def __init__(self, merchant_gateway: MerchantGateway):
        self._merchant_gateway = merchant_gateway

    async def handle(self, command: SetProductPausedCommand) -> Dict[str, Any]:
        with log_context(correlation_id=command.process_id or None, caller_id=command.caller):
            changed = await self._merchant_gateway.set_product_paused(
                caller=command.caller,
                product_id=command.product_id,
                paused=command.paused,
                process_id=command.process_id
            )
            return {
                "product_id": command.product_id,
                "paused": command.paused,
                "changed": changed,
            }
