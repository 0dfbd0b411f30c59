"""Sheet-to-store reconciliation.

Fetches the application directory and the per-user allow-list from two
published spreadsheets (CSV over HTTP), normalizes and expands them, and
upserts the results into the ``apps`` and ``user_apps`` tables.
"""
