"""FastAPI application for the FAFSA assistant."""
