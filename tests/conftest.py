"""
Fixtures compartidas.

Cada test recibe su propia base SQLite en memoria, con las tablas creadas.
"""
import pytest

from veterinaria.contratos import ContratosImpl
from veterinaria.database import crear_engine, crear_tablas
from veterinaria.models import Control, Ficha, Persona
from veterinaria.repositories import RepositorySQLModel

from tests.factories import nueva_ficha, nueva_persona


@pytest.fixture
def engine():
    engine = crear_engine("sqlite://", echo=False)
    crear_tablas(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repo_persona(engine):
    return RepositorySQLModel(engine, Persona)


@pytest.fixture
def repo_ficha(engine):
    return RepositorySQLModel(engine, Ficha)


@pytest.fixture
def repo_control(engine):
    return RepositorySQLModel(engine, Control)


@pytest.fixture
def contratos(engine):
    return ContratosImpl(engine)


@pytest.fixture
def diego(repo_persona):
    persona = nueva_persona()
    repo_persona.create(persona)
    return persona


@pytest.fixture
def firulais(repo_ficha, diego):
    ficha = nueva_ficha(diego)
    repo_ficha.create(ficha)
    return ficha
