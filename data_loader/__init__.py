"""
data_loader
===========

Market-data collaborator for the agent: the latest quote (one `Tick`)
and daily bars for the one-time indicator warm-up, both pulled from
financialmodelingprep.com.

Modules
-------
history.py   – FMPClient (fetch_quote / retrieve_bars)
"""
