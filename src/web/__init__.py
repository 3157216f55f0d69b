"""Web layer: FastAPI app, routers and dependencies."""
