"""
Repositorio generico sobre SQLModel.

Uso:
    engine = crear_engine("sqlite://")
    crear_tablas(engine)
    repo = RepositorySQLModel(engine, Persona)
    repo.create(persona)
    repo.find_by_id(persona.id)

Cada operacion abre y cierra su propia Session sobre el engine
compartido. Los registros devueltos quedan desligados de la sesion,
con las asociaciones del descriptor ya cargadas.
"""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import MANYTOONE, selectinload
from sqlmodel import Session

from veterinaria.core.exceptions import InvalidConstruction
from veterinaria.models import Descriptor, descriptor_de
from veterinaria.repositories.base import Repository, traducir_errores
from veterinaria.repositories.query import QueryBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositorySQLModel(Repository[T, int]):

    def __init__(self, engine: Engine, modelo: Type[T]):
        if engine is None:
            raise InvalidConstruction("Se necesita una conexion (engine)")
        if modelo is None:
            raise InvalidConstruction("Se necesita el tipo de registro")
        descriptor = descriptor_de(modelo)
        if descriptor is None:
            raise InvalidConstruction(
                f"{modelo.__name__} no tiene descriptor registrado",
                details={"modelo": modelo.__name__},
            )

        self._engine = engine
        self._modelo = modelo
        self._descriptor = descriptor
        self._mapper = inspect(modelo)
        self._pk = self._mapper.get_property_by_column(self._mapper.primary_key[0]).key

    @property
    def modelo(self) -> Type[T]:
        return self._modelo

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    @property
    def mapper(self):
        return self._mapper

    def create(self, registro: T) -> bool:
        valores = self._valores(registro)
        fila = self._modelo(**valores)

        with traducir_errores("create", self._modelo):
            with Session(self._engine, expire_on_commit=False) as session:
                session.add(fila)
                session.commit()

        # solo se toca el registro del llamador si el insert funciono
        setattr(registro, self._pk, getattr(fila, self._pk))
        for clave, valor in valores.items():
            if getattr(registro, clave, None) is None:
                setattr(registro, clave, valor)

        logger.debug("Created %s with id %s.", self._modelo.__name__, getattr(fila, self._pk))
        return True

    def find_by_id(self, id: int) -> Optional[T]:
        with traducir_errores("find_by_id", self._modelo):
            with Session(self._engine) as session:
                return session.get(self._modelo, id, options=self._opciones_de_carga())

    def find_all(self, campo: Optional[str] = None, valor: Any = None) -> List[T]:
        query = self.get_query()
        if campo is not None:
            query.equals(campo, valor)
        return query.query()

    def delete(self, id: int) -> bool:
        with traducir_errores("delete", self._modelo):
            with Session(self._engine) as session:
                fila = session.get(self._modelo, id)
                if fila is None:
                    return False
                session.delete(fila)
                session.commit()

        logger.debug("Deleted %s with id %s.", self._modelo.__name__, id)
        return True

    def get_query(self) -> QueryBuilder[T]:
        return QueryBuilder(self)

    def listar(self, statement) -> List[T]:
        """Ejecuta un select ya compilado por un QueryBuilder de este repositorio."""
        with traducir_errores("query", self._modelo):
            with Session(self._engine) as session:
                return list(session.exec(statement.options(*self._opciones_de_carga())).all())

    def _opciones_de_carga(self) -> list:
        return [selectinload(getattr(self._modelo, nombre)) for nombre in self._descriptor.asociaciones]

    def _valores(self, registro: T) -> Dict[str, Any]:
        """
        Columnas del registro listas para insertar.

        Las foreign keys vacias se toman del registro referenciado
        (ficha.duenio -> duenio_id). Se lee el estado sin disparar
        cargas perezosas.
        """
        estado = inspect(registro).dict
        valores = {
            atributo.key: estado[atributo.key]
            for atributo in self._mapper.column_attrs
            if estado.get(atributo.key) is not None
        }

        for relacion in self._mapper.relationships:
            if relacion.direction is not MANYTOONE:
                continue
            relacionado = estado.get(relacion.key)
            if relacionado is None:
                continue
            estado_relacionado = inspect(relacionado).dict
            for local, remota in relacion.local_remote_pairs:
                clave_local = self._mapper.get_property_by_column(local).key
                clave_remota = relacion.mapper.get_property_by_column(remota).key
                if clave_local not in valores and estado_relacionado.get(clave_remota) is not None:
                    valores[clave_local] = estado_relacionado[clave_remota]

        return valores
