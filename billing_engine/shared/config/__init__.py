# 📄 File: billing_engine/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains the settings that tell the billing engine who its administrator is,
# where platform fees go, and how to reach the payment gateway.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization with exports for settings management.
#
# 🔗 Dependencies:
# - settings.py (application settings)
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap
# - All modules requiring configuration

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
