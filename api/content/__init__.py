"""
Content collections: shop items, research news and Twitter news.

`repository.py` talks to Cloudant, `service.py` holds request-level rules
(collection names, paging windows), `router.py` exposes the HTTP endpoints.
"""
