"""
Repository base - interfaz comun de los repositorios.

Un repositorio trabaja sobre un solo tipo de registro (Persona, Ficha,
Control) y direcciona cada registro por su identidad. La conexion se
recibe prestada: el repositorio nunca la cierra.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, Iterator, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from veterinaria.core.exceptions import ConstraintViolation, StoreUnavailable

if TYPE_CHECKING:
    from veterinaria.repositories.query import QueryBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")
ID = TypeVar("ID")


@contextmanager
def traducir_errores(operacion: str, modelo: type) -> Iterator[None]:
    """
    Traduce los errores de SQLAlchemy a los del dominio.

    IntegrityError -> ConstraintViolation, cualquier otro -> StoreUnavailable.
    Nunca reintenta.
    """
    try:
        yield
    except IntegrityError as e:
        logger.error("Constraint violated on %s of %s: %s", operacion, modelo.__name__, e.orig)
        raise ConstraintViolation(
            f"Restriccion violada en {operacion} de {modelo.__name__}",
            details={"error": str(e.orig)},
            original_error=e,
        ) from e
    except SQLAlchemyError as e:
        logger.error("Store error on %s of %s: %s", operacion, modelo.__name__, e)
        raise StoreUnavailable(
            f"No se pudo ejecutar {operacion} de {modelo.__name__}",
            details={"error": str(e)},
            original_error=e,
        ) from e


class Repository(ABC, Generic[T, ID]):
    """
    Interfaz base de los repositorios.

    Example:
        repo: Repository[Persona, int] = RepositorySQLModel(engine, Persona)
        repo.create(Persona(nombre="Andrea", apellido="Contreras",
                            rut="152532873", email="acontreras@ucn.cl"))
        personas = repo.find_all("rut", "152532873")
    """

    @abstractmethod
    def create(self, registro: T) -> bool:
        """
        Inserta el registro y le asigna su identidad.

        Raises:
            ConstraintViolation: rut duplicado, referencia inexistente, etc.
            StoreUnavailable: la conexion no pudo escribir
        """

    @abstractmethod
    def find_by_id(self, id: ID) -> Optional[T]:
        """
        Busca por identidad, con sus asociaciones cargadas.

        Returns:
            El registro o None si no existe
        """

    @abstractmethod
    def find_all(self, campo: Optional[str] = None, valor: Any = None) -> List[T]:
        """
        Todos los registros, o los que tienen `campo` igual a `valor`.
        """

    @abstractmethod
    def delete(self, id: ID) -> bool:
        """
        Elimina por identidad.

        Returns:
            True si se elimino, False si no existia
        """

    @abstractmethod
    def get_query(self) -> "QueryBuilder[T]":
        """Un QueryBuilder nuevo para este tipo de registro."""

    def exists(self, id: ID) -> bool:
        """True si hay un registro con esa identidad. Carga el registro completo."""
        return self.find_by_id(id) is not None
