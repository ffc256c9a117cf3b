"""
decision_service
================

Implements the regression-band mean-reversion engine for one symbol.

Data-flow
---------
1. Pull today's 30-min bars fresh and the previous four trading days'
   bars through the cache (*data_loader*).

2. Classify the latest bar's session (`rules.py`), fit the five-day
   least-squares line and its ±2.5σ band (`regression.py`).

3. Combine the latest bar, the band and the broker's position snapshot
   into at most one action (`decision.py`) and hand it to
   *trade_executor*.

`decision_service.py` runs this once per poll interval and never lets
two cycles overlap.
"""
