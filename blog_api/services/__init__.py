# Services package.
#
# Each module exposes async functions holding the business logic for one
# concern:
#
#   auth_service     registration and login, token issuance
#   user_service     profile reads, owner-or-admin update/delete
#   article_service  cached article reads, owner-or-admin writes
#   role_service     lookups of the seeded roles
#
# Every function takes an AsyncSession first so the router layer controls
# the transaction boundary via ``get_db``.  Mutations take the caller's
# Identity explicitly and raise errors from ``blog_api.exceptions``.
