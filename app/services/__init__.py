# Services package.
#
# Each module exposes a focused set of async functions over a single
# domain aggregate:
#
#   article_service   — filtered listing, counts, lookups, create/update/delete
#   taxonomy_service  — read-only category and tag lookups
#   stats_service     — published-article summary (totals, per category, recent)
#   user_service      — identity lookup and upsert keyed by open_id
#
# All service functions accept an AsyncSession (or None when storage is
# unavailable) as their first argument so that the router layer controls
# the transaction boundary via the ``get_db`` dependency.
