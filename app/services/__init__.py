# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic for a single domain aggregate:
#
#   article_service    : create / list / read / update / delete for Article
#   engagement_service : like toggling and view counting
#   category_service   : CRUD for Category, with the in-use delete guard
#   user_service       : the accounts that author and like articles
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``app.errors`` exceptions.
