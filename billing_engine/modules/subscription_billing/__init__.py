# 📄 File: billing_engine/modules/subscription_billing/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the subscription billing system that opens subscriptions, charges them every
# cycle, handles customer pauses and cancellations, and lets merchants pause product lines
# 🧪 Purpose (Technical Summary):
# Package initialization for the subscription billing module implementing domain-driven
# design with CQRS commands/queries over a per-key locked subscription state machine
# 🔗 Dependencies:
# pydantic, billing_engine.shared.core, billing_engine.shared.config
# 🔄 Connected Modules / Calls From:
# billing_engine.bootstrap, external billing orchestrator

"""
Subscription Billing Module

This module handles recurring subscription billing:
- Subscription creation with an immediate first charge
- Scheduled rebilling on a calendar day or a fixed interval
- Customer pause with a pro-rated settlement fee
- Cancellation, reactivation and batch cancellation
- Merchant product pause and administrator controls

Architecture follows Domain-Driven Design:
- Domain: Subscription entity, billing services, events, repository port
- Application: Commands, queries and their handlers
- Infrastructure: In-memory repository and payment gateway adapter
"""

# Module metadata
__version__ = "1.0.0"
__module_name__ = "subscription_billing"
__description__ = "Recurring Subscription Billing Module"
