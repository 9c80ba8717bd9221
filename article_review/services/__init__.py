# Services package.
#
# Each resource module exposes a focused set of async functions over the
# shared cache-aside accessor:
#
#   cached_collection : cache-aside reads + evict-on-write, generic per resource
#   article_service   : CRUD for Article
#   review_service    : CRUD for Review, with the article reference check
#   article_reference : "does this article exist?" verdict for review writes
#
# Service functions accept an AsyncSession and the process cache as their
# first arguments, and return either a result or a ServiceError value.
