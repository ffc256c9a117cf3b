"""
data_loader
===========

Pulls 30-minute and daily bars for the traded symbol from the Alpaca
market-data API and turns them into `Candle` objects for the regression.

Modules
-------
loader.py     – REST client (pagination, bar-window cache, ET day windows)
candles.py    – raw bar → Candle normaliser
"""
