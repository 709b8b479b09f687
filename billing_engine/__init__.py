# 📄 File: billing_engine/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# The main entry point that tells Python this folder contains the recurring billing engine
# and sets up the basic version and package information.
#
# 🧪 Purpose (Technical Summary):
# Package initialization with version info for the subscription billing engine.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (engine wiring)
# - Orchestrators embedding the engine

__version__ = "1.0.0"
__title__ = "billing-engine"
__description__ = "Recurring subscription billing engine"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
]
