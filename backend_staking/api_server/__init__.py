"""
API server package: HTTP/REST interface for the staking dashboard.

Serves stake and reward analytics, accounts, validators, network stats,
compliance checks and explorer transactions. Delegates to the analytics layer
and the selected data source; responses are cached in the app-owned TTL cache.
"""
