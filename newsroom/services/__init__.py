# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   auth_service      login, registration, token refresh, password restore
#   user_service      user lookups, listing and role/password updates
#   category_service  category creation and listing
#   article_service   article CRUD, publishing, draft listing, view counts
#   comment_service   draft/published comments and moderation
#   image_service     image upload/removal through object storage
#
# All service functions that touch the database accept an AsyncSession as
# their first argument so that the router layer controls the transaction
# boundary via the ``get_db`` dependency.
