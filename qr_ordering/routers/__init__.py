"""
API Routers

Admin and reporting endpoints grouped by area; the order endpoints live in
``qr_ordering.main``.
"""
