"""Ports (interfaces) the domain depends on."""

from __future__ import annotations

from .persistence import IdMappingRepository, PersistenceError
from .spatial import ComplexLocator, NearbyComplex, NearbyStreet, SpatialIndex, StreetLocator
from .unit_of_work import MappingRepositories, MappingUnitOfWork

__all__ = [
    "ComplexLocator",
    "IdMappingRepository",
    "MappingRepositories",
    "MappingUnitOfWork",
    "NearbyComplex",
    "NearbyStreet",
    "PersistenceError",
    "SpatialIndex",
    "StreetLocator",
]
