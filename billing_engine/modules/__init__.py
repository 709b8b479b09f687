# 📄 File: billing_engine/modules/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the business modules of the billing engine
# 🧪 Purpose (Technical Summary):
# Namespace package for domain modules following the DDD module layout
# 🔗 Dependencies:
# None
# 🔄 Connected Modules / Calls From:
# billing_engine.bootstrap
