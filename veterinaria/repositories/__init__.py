"""
Repositories - capa de acceso a datos.

Un repositorio generico por tipo de registro, todos sobre el mismo
engine, mas un QueryBuilder para filtros y joins entre repositorios.
"""

from .base import Repository, traducir_errores
from .orm import RepositorySQLModel
from .query import AnyOf, Equals, Join, Like, QueryBuilder

__all__ = [
    "Repository",
    "RepositorySQLModel",
    "QueryBuilder",
    "Equals",
    "Like",
    "AnyOf",
    "Join",
    "traducir_errores",
]
