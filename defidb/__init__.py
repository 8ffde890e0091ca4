"""
DeFi database fetchers.

Scheduled jobs that read vault registries, gauges and token metadata from
chain, price them through public APIs and merge the results into the JSON
files of the database.
"""

__version__ = "0.1.0"
