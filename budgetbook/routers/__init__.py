"""Route groups and the prefixes they are mounted under."""

from . import auth, bug_reports, entries, logbooks, overviews, purchases, users

API_PREFIX = "/api/v1"

ROUTE_GROUPS = [
    (f"{API_PREFIX}/auth", auth.router, "auth"),
    (f"{API_PREFIX}/users", users.router, "users"),
    (f"{API_PREFIX}/overviews", overviews.router, "overviews"),
    (f"{API_PREFIX}/logbooks", logbooks.router, "logbooks"),
    (f"{API_PREFIX}/entries", entries.router, "entries"),
    (f"{API_PREFIX}/purchases", purchases.router, "purchases"),
    (f"{API_PREFIX}/bug-reports", bug_reports.router, "bug-reports"),
]
