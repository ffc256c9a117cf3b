"""
shared – tiny helpers imported by every service
-----------------------------------------------
Modules
-------
config.py         → loads `.env` once per process, typed bot settings
logging.py        → consistent JSON/stdout logger
constants.py      → band multipliers, session bounds, timeframes
errors.py         → exception hierarchy shared by the clients and core
bar_cache.py      → bar-window cache (in-memory or Redis)
utils.py          → Eastern-time one-liners that don’t belong elsewhere
"""
