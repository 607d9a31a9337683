"""
shared – tiny helpers imported by every package
-----------------------------------------------
Modules
-------
config.py         → loads `.env` once per process, typed env lookups
logging.py        → consistent JSON/stdout logger
constants.py      → indicator windows, instrument defaults, Redis keys
errors.py         → error taxonomy shared by collaborators and the agent
models.py         → Tick / Bar value objects
redis_client.py   → singleton Redis + heartbeat helpers
utils.py          → misc one-liners that don’t belong elsewhere
"""
