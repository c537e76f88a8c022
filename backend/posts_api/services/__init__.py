# Services package init
"""
Posts API — Services Layer
===========================

Service Inventory:
    - PostService (post_service.py): the post store; create, get, list, favourite
    - AuthService (auth_service.py): issues and verifies JWT bearer credentials

Services know nothing about HTTP. Routes get them from `app.state` through
the dependencies in posts_api.dependencies.
"""
