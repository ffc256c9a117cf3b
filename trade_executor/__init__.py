"""
trade_executor
==============

Bridges the decision service with the Alpaca paper-trading account.

* `alpaca_client.py` – account / position reads, market orders, closes
  (with a DRY_RUN switch that only logs).
* `executor.py`      – performs the single action a cycle decided on and
  reports what happened; never retries inside a cycle.

The broker is the only owner of position state – nothing here remembers
what was bought or sold between cycles.
"""
