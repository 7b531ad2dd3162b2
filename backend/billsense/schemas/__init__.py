"""Pydantic request/response models, one module per route table."""
