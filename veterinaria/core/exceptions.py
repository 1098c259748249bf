"""
Excepciones de la veterinaria.

"No encontrado" no es una excepcion: los repositorios devuelven None.
"""
from typing import Optional


class VeterinariaException(Exception):
    """Base de todos los errores del sistema."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConstraintViolation(VeterinariaException):
    """Se rompio una restriccion de unicidad o referencial al escribir."""
    pass


class StoreUnavailable(VeterinariaException):
    """La conexion no pudo ejecutar la consulta o el comando."""
    pass


class InvalidConstruction(VeterinariaException):
    """Repositorio creado sin conexion o sin descriptor. Error de programacion."""
    pass


class InvalidQuery(VeterinariaException):
    """Campo desconocido, join sin asociacion o builder reutilizado."""
    pass


class ValidationError(VeterinariaException):
    """Datos de entrada invalidos en un caso de uso."""
    pass
