"""
Contratos - casos de uso de la veterinaria.

Todos los repositorios de un ContratosImpl comparten el mismo engine.
Quien crea el engine es quien lo cierra: ContratosImpl solo cierra el
que crea el mismo en desde_url().
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.engine import Engine

from veterinaria.core.exceptions import InvalidConstruction, ValidationError
from veterinaria.database import crear_engine, crear_tablas
from veterinaria.models import Control, Ficha, Persona, a_texto
from veterinaria.repositories import Like, RepositorySQLModel

logger = logging.getLogger(__name__)


class Contratos(ABC):

    @abstractmethod
    def registrar_paciente(self, ficha: Ficha) -> Ficha:
        """Registra la ficha de un paciente con su duenio ya existente."""

    @abstractmethod
    def registrar_persona(self, persona: Persona) -> Persona:
        """Registra un duenio o veterinario."""

    @abstractmethod
    def buscar_ficha(self, query: str) -> List[Ficha]:
        """
        Busca fichas por numero, rut del duenio, nombre del paciente
        y nombre o apellido del duenio, en ese orden y sin deduplicar.

        Numero y rut solo se consultan si la query es numerica. El ultimo
        criterio compara la query con nombre OR apellido del duenio, asi
        "Urrutia" encuentra las fichas de Diego Urrutia.
        """


class ContratosImpl(Contratos):

    def __init__(self, engine: Engine):
        if engine is None:
            raise InvalidConstruction("Se necesita una conexion (engine)")
        self._engine = engine
        self._engine_propio = False

        logger.debug("Creating the repos ..")
        self.repo_ficha = RepositorySQLModel(engine, Ficha)
        self.repo_persona = RepositorySQLModel(engine, Persona)
        self.repo_control = RepositorySQLModel(engine, Control)

    @classmethod
    def desde_url(cls, database_url: Optional[str] = None) -> "ContratosImpl":
        """Crea el engine y las tablas. El engine se cierra con close()."""
        engine = crear_engine(database_url)
        crear_tablas(engine)
        contratos = cls(engine)
        contratos._engine_propio = True
        return contratos

    def close(self) -> None:
        if self._engine_propio:
            self._engine.dispose()

    def __enter__(self) -> "ContratosImpl":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def registrar_paciente(self, ficha: Ficha) -> Ficha:
        if ficha.duenio is None and ficha.duenio_id is None:
            raise ValidationError("La ficha necesita un duenio")
        if not (ficha.nombre_paciente or "").strip():
            raise ValidationError("La ficha necesita el nombre del paciente")

        self.repo_ficha.create(ficha)
        logger.debug("Ficha: %s.", a_texto(ficha))
        logger.info("Paciente registrado: ficha %s (numero %s)", ficha.id, ficha.numero)
        return ficha

    def registrar_persona(self, persona: Persona) -> Persona:
        faltantes = [
            campo for campo in ("nombre", "apellido", "rut", "email")
            if not (getattr(persona, campo) or "").strip()
        ]
        if faltantes:
            raise ValidationError("Faltan datos de la persona", details={"campos": faltantes})
        if "@" not in persona.email:
            raise ValidationError("Email invalido", details={"email": persona.email})

        self.repo_persona.create(persona)
        logger.debug("Persona: %s.", a_texto(persona))
        logger.info("Persona registrada: %s", persona.id)
        return persona

    def buscar_ficha(self, query: str) -> List[Ficha]:
        # Sin deduplicar: una ficha que cumple dos criterios aparece dos veces
        fichas: List[Ficha] = []

        if query.isdecimal():
            # 1. numero exacto
            logger.debug("Searching with numero ..")
            fichas.extend(self.repo_ficha.find_all("numero", query))

            # 2. rut parcial del duenio
            logger.debug("Searching with rut ..")
            personas = self.repo_persona.get_query().like("rut", query)
            fichas.extend(self.repo_ficha.get_query().join(personas).query())

        # 3. nombre parcial del paciente
        logger.debug("Searching with nombre paciente ..")
        fichas.extend(self.repo_ficha.get_query().like("nombrePaciente", query).query())

        # 4. nombre parcial del duenio
        logger.debug("Searching with nombre duenio ..")
        personas = self.repo_persona.get_query().any_of(
            Like("nombre", query), Like("apellido", query)
        )
        fichas.extend(self.repo_ficha.get_query().join(personas).query())

        return fichas
