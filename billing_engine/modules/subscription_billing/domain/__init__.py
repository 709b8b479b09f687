# 📄 File: billing_engine/modules/subscription_billing/domain/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the core billing rules - what a subscription is, when it may be charged,
# how much a pause costs and who is allowed to do what
# 🧪 Purpose (Technical Summary):
# Domain layer initialization containing the Subscription entity, payment value objects,
# domain services, the repository interface and domain events
# 🔗 Dependencies:
# Domain models, services, repositories, events from subpackages
# 🔄 Connected Modules / Calls From:
# Application layer, Infrastructure layer, bootstrap

"""
Subscription Billing Domain Layer

Domain Models:
- Subscription: Billing agreement with lifecycle status and cycle counters
- PaymentTerms / PaymentResult / SettlementBreakdown: Payment value objects

Domain Services:
- SubscriptionService: Lifecycle state machine and billing attempts
- PauseSettlementService: Customer pause with settlement fee
- MerchantGateway: Product pause, batch cancel, administrator controls
- PaymentDispatcher: Overcharge guard and rail routing

Business Rules Enforced:
- Never charge twice for one cycle
- Never charge more than the price per cycle
- Never bill paused, cancelled or finished subscriptions
"""
