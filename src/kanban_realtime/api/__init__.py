from .router import MutationRequest, create_router

__all__ = ["MutationRequest", "create_router"]
