# 📄 File: billing_engine/modules/subscription_billing/application/__init__.py
# 🧭 Purpose (Layman Explanation):
# This file organizes the application layer for subscription billing, which holds the commands
# (like "charge this subscription") and queries (like "what is its status") the orchestrator uses.
#
# 🧪 Purpose (Technical Summary):
# Application layer initialization implementing the CQRS pattern with commands, queries and
# handlers over the subscription billing domain services.
#
# 🔗 Dependencies:
# - billing_engine.modules.subscription_billing.domain (domain services and models)
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (handler wiring)

"""
Subscription Billing Application Layer

Application Components:
- Commands: Create, charge, pause, cancel, activate, batch cancel, product pause
- Queries: Subscription status
- Handlers: Command and query execution with logging context
"""
