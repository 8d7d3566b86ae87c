from .coordinator import InsertionCoordinator, InsertionRequest

__all__ = ["InsertionCoordinator", "InsertionRequest"]
