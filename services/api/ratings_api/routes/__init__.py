"""API routes."""

from fastapi import APIRouter

from ratings_api.routes import auth, ratings, stores, users

api_router = APIRouter()

# Authentication (register, login, profile, password, logout)
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])

# Admin user management
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])

# Stores (admin CRUD, listings, owner dashboard)
api_router.include_router(stores.router, prefix="/v1/stores", tags=["stores"])

# Ratings (submit/update/delete, per-store and per-user views, stats)
api_router.include_router(ratings.router, prefix="/v1/ratings", tags=["ratings"])
