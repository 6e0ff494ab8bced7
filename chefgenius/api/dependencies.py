"""Shared API dependencies."""

from fastapi import Request

from chefgenius.services.kitchen import KitchenSession
from chefgenius.services.persistence import PersistenceStore


def get_kitchen(request: Request) -> KitchenSession:
    """The process-wide kitchen session created at startup."""
    return request.app.state.kitchen


def get_store(request: Request) -> PersistenceStore:
    """The persistence store behind the kitchen session."""
    return request.app.state.kitchen.store
