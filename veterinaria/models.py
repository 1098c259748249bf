import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, Relationship, SQLModel


class FechaHoraUTC(TypeDecorator):
    """Guarda instantes en UTC y los devuelve con tzinfo=UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            # sin zona horaria se asume UTC
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Sexo(str, enum.Enum):
    MACHO = "MACHO"
    HEMBRA = "HEMBRA"


class Tipo(str, enum.Enum):
    INTERNO = "INTERNO"
    EXTERNO = "EXTERNO"


class Persona(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    nombre: str
    apellido: str
    rut: str = Field(unique=True, index=True)
    email: str
    fichas: List["Ficha"] = Relationship(back_populates="duenio")
    controles: List["Control"] = Relationship(back_populates="veterinario")


class Ficha(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    numero: int = Field(index=True)
    nombre_paciente: str
    especie: str
    fecha_nacimiento: datetime = Field(sa_column=Column(FechaHoraUTC(), nullable=False))
    raza: str
    sexo: Sexo
    color: str
    tipo: Tipo
    duenio_id: int = Field(foreign_key="persona.id")
    duenio: Persona = Relationship(back_populates="fichas")
    controles: List["Control"] = Relationship(
        back_populates="ficha", sa_relationship_kwargs={"order_by": "Control.id"}
    )


class Control(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    fecha: datetime = Field(sa_column=Column(FechaHoraUTC(), nullable=False))
    fecha_proximo_control: datetime = Field(sa_column=Column(FechaHoraUTC(), nullable=False))
    temperatura: float
    peso: float
    altura: float
    diagnostico: str
    veterinario_id: int = Field(foreign_key="persona.id")
    veterinario: Persona = Relationship(back_populates="controles")
    ficha_id: int = Field(foreign_key="ficha.id")
    ficha: Ficha = Relationship(back_populates="controles")


@dataclass(frozen=True)
class Descriptor:
    """
    Contrato de mapeo de un tipo de registro.

    `campos` traduce el nombre publico de cada campo (el que se usa en
    equals/like, p.ej. "nombrePaciente") al atributo del modelo.
    `asociaciones` son las relaciones que se cargan al leer y que
    se pueden usar en un join.
    """

    modelo: type
    campos: Dict[str, str]
    asociaciones: Tuple[str, ...] = field(default=())

    def atributo(self, campo: str) -> Optional[str]:
        if campo in self.campos:
            return self.campos[campo]
        if campo in self.campos.values():
            return campo
        return None


DESCRIPTORES: Dict[type, Descriptor] = {
    Persona: Descriptor(
        modelo=Persona,
        campos={
            "id": "id",
            "nombre": "nombre",
            "apellido": "apellido",
            "rut": "rut",
            "email": "email",
        },
        asociaciones=("fichas", "controles"),
    ),
    Ficha: Descriptor(
        modelo=Ficha,
        campos={
            "id": "id",
            "numero": "numero",
            "nombrePaciente": "nombre_paciente",
            "especie": "especie",
            "fechaNacimiento": "fecha_nacimiento",
            "raza": "raza",
            "sexo": "sexo",
            "color": "color",
            "tipo": "tipo",
            "duenio": "duenio_id",
        },
        asociaciones=("duenio", "controles"),
    ),
    Control: Descriptor(
        modelo=Control,
        campos={
            "id": "id",
            "fecha": "fecha",
            "fechaProximoControl": "fecha_proximo_control",
            "temperatura": "temperatura",
            "peso": "peso",
            "altura": "altura",
            "diagnostico": "diagnostico",
            "veterinario": "veterinario_id",
            "ficha": "ficha_id",
        },
        asociaciones=("veterinario", "ficha"),
    ),
}


def descriptor_de(modelo: Optional[type]) -> Optional[Descriptor]:
    if modelo is None:
        return None
    return DESCRIPTORES.get(modelo)


def a_texto(registro: SQLModel) -> str:
    """Persona(id=1, nombre='Diego', ...) con las columnas, sin relaciones."""
    columnas = inspect(type(registro)).column_attrs
    valores = ", ".join(f"{c.key}={getattr(registro, c.key)!r}" for c in columnas)
    return f"{type(registro).__name__}({valores})"
