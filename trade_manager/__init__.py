"""
trade_manager
=============

Process entry point and ops view:

• Runs the decision-service cycle loop.
• Keeps the bounded, newest-first trade log (`journal.py`).
• Publishes a small REST API for dashboards (`/status`, `/log`).
"""
