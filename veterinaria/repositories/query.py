"""
QueryBuilder - construccion fluida de filtros.

Los filtros se guardan como un arbol de predicados (Equals, Like, AnyOf,
Join) y se traducen a un select de SQLAlchemy solo al ejecutar.

Uso:
    personas = repo_persona.get_query().like("rut", "123")
    fichas = repo_ficha.get_query().join(personas).query()
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, List, Optional, Tuple, TypeVar, Union

from sqlalchemy import false, or_
from sqlalchemy.orm import aliased
from sqlmodel import select

from veterinaria.core.exceptions import InvalidQuery

if TYPE_CHECKING:
    from veterinaria.repositories.orm import RepositorySQLModel

T = TypeVar("T")

# rango de un INTEGER de 64 bits
ENTERO_MIN = -(2 ** 63)
ENTERO_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class Equals:
    campo: str
    valor: Any


@dataclass(frozen=True)
class Like:
    """Substring: el texto se encierra entre comodines, % y _ se buscan literales."""

    campo: str
    texto: str


@dataclass(frozen=True)
class AnyOf:
    predicados: Tuple[Union[Equals, Like], ...]


@dataclass(frozen=True)
class Join:
    otro: "QueryBuilder"
    via: Optional[str] = None


Predicado = Union[Equals, Like, AnyOf, Join]


class QueryBuilder(Generic[T]):
    """
    Acumula predicados (todos deben cumplirse) y los ejecuta con query().

    Se usa una sola vez: agregar predicados o volver a ejecutar un
    builder ya ejecutado levanta InvalidQuery.
    """

    def __init__(self, repositorio: "RepositorySQLModel"):
        self._repositorio = repositorio
        self._predicados: List[Predicado] = []
        self._ejecutado = False

    @property
    def modelo(self) -> type:
        return self._repositorio.modelo

    @property
    def predicados(self) -> Tuple[Predicado, ...]:
        return tuple(self._predicados)

    def equals(self, campo: str, valor: Any) -> "QueryBuilder[T]":
        return self._agregar(Equals(campo, valor))

    def like(self, campo: str, texto: str) -> "QueryBuilder[T]":
        return self._agregar(Like(campo, texto))

    def any_of(self, *predicados: Union[Equals, Like]) -> "QueryBuilder[T]":
        if not predicados:
            raise InvalidQuery("any_of necesita al menos un predicado")
        for predicado in predicados:
            if not isinstance(predicado, (Equals, Like)):
                raise InvalidQuery(
                    "any_of solo admite Equals o Like",
                    details={"predicado": type(predicado).__name__},
                )
        return self._agregar(AnyOf(tuple(predicados)))

    def join(self, otro: "QueryBuilder", via: Optional[str] = None) -> "QueryBuilder[T]":
        if otro is self:
            raise InvalidQuery("Un builder no puede hacer join consigo mismo")
        return self._agregar(Join(otro, via))

    def query(self) -> List[T]:
        if self._ejecutado:
            raise InvalidQuery("QueryBuilder ya ejecutado, pedir uno nuevo con get_query()")
        statement = self._compilar()
        self._ejecutado = True
        return self._repositorio.listar(statement)

    def _agregar(self, predicado: Predicado) -> "QueryBuilder[T]":
        if self._ejecutado:
            raise InvalidQuery("QueryBuilder ya ejecutado, pedir uno nuevo con get_query()")
        self._predicados.append(predicado)
        return self

    def _compilar(self):
        return self._aplicar(select(self.modelo), self.modelo)

    def _aplicar(self, statement, entidad):
        for predicado in self._predicados:
            if isinstance(predicado, Join):
                destino = aliased(predicado.otro.modelo)
                relacion = self._relacion_hacia(predicado.otro.modelo, predicado.via)
                statement = statement.join(getattr(entidad, relacion).of_type(destino))
                statement = predicado.otro._aplicar(statement, destino)
            else:
                statement = statement.where(self._condicion(predicado, entidad))
        return statement

    def _condicion(self, predicado: Predicado, entidad):
        if isinstance(predicado, AnyOf):
            return or_(*(self._condicion(p, entidad) for p in predicado.predicados))

        atributo = self._atributo(predicado.campo)
        columna = getattr(entidad, atributo)
        if isinstance(predicado, Equals):
            valor = self._coaccionar(atributo, predicado.valor)
            if isinstance(valor, int) and not ENTERO_MIN <= valor <= ENTERO_MAX:
                # ninguna fila puede guardar ese numero
                return false()
            return columna == valor
        return columna.contains(str(predicado.texto), autoescape=True)

    def _atributo(self, campo: str) -> str:
        atributo = self._repositorio.descriptor.atributo(campo)
        if atributo is None or atributo not in self._repositorio.mapper.column_attrs:
            raise InvalidQuery(
                f"{self.modelo.__name__} no tiene el campo {campo}",
                details={"campo": campo},
            )
        return atributo

    def _coaccionar(self, atributo: str, valor: Any) -> Any:
        # "123" contra una columna int
        if not isinstance(valor, str):
            return valor
        try:
            tipo = self._repositorio.mapper.columns[atributo].type.python_type
        except NotImplementedError:
            return valor
        if tipo not in (int, float):
            return valor
        try:
            return tipo(valor)
        except ValueError as e:
            raise InvalidQuery(
                f"{valor!r} no es valido para {self.modelo.__name__}.{atributo}",
                details={"campo": atributo, "valor": valor},
                original_error=e,
            ) from e

    def _relacion_hacia(self, otro_modelo: type, via: Optional[str]) -> str:
        relaciones = self._repositorio.mapper.relationships
        candidatas = [
            nombre for nombre in self._repositorio.descriptor.asociaciones
            if relaciones[nombre].mapper.class_ is otro_modelo
        ]
        if via is not None:
            if via not in candidatas:
                raise InvalidQuery(
                    f"{self.modelo.__name__}.{via} no asocia con {otro_modelo.__name__}",
                    details={"via": via},
                )
            return via
        if not candidatas:
            raise InvalidQuery(
                f"{self.modelo.__name__} no tiene asociacion con {otro_modelo.__name__}"
            )
        if len(candidatas) > 1:
            raise InvalidQuery(
                f"Asociacion ambigua entre {self.modelo.__name__} y {otro_modelo.__name__}",
                details={"candidatas": candidatas},
            )
        return candidatas[0]
