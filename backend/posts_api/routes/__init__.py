# Routes package init
"""
Posts API — Route Handlers
===========================

Route Inventory:
    - auth.py:    POST /login                     (issue bearer token)
    - posts.py:   GET  /posts                     (list all posts)
                  GET  /posts/{post_id}           (single post)
                  POST /posts                     (create, bearer token required)
                  POST /posts/{post_id}/favorite  (mark as favourite)
    - health.py:  GET  /                          (welcome message)
                  GET  /health                    (service health check)

Routes stay thin: extract request data, call a service, return a schema.
"""
