# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single concern:
#
#   article_service   — CRUD, public reads and view counting for Article
#   category_service  — listing / creating Category
#   auth_service      — password hashing and credential checks for User
#
# All service functions that touch the database accept an AsyncSession
# as their first argument so that the router layer controls the
# transaction boundary via the ``get_db`` dependency.
