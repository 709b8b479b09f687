# 📄 File: billing_engine/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a Python package containing common tools
# (settings, errors, logging, events) every part of the billing engine can use.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package initialization for configuration, exceptions,
# logging and the event bus used throughout the billing engine modules.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - All billing engine modules importing shared utilities
