"""
FastAPI routers grouped by domain.

Each module exposes an APIRouter that is included in the main application
(app.py).
"""
