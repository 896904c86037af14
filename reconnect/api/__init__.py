from .routes import api_router, router

__all__ = ["api_router", "router"]
