"""
Tests del repositorio generico sobre SQLite en memoria.
"""
from datetime import datetime, timedelta, timezone

import pytest

from veterinaria.core.exceptions import ConstraintViolation, InvalidConstruction, StoreUnavailable
from veterinaria.database import crear_engine
from veterinaria.models import Control, Ficha, Persona
from veterinaria.repositories import RepositorySQLModel

from tests.factories import nueva_ficha, nueva_persona


class TestConstruccion:

    def test_engine_nulo(self):
        with pytest.raises(InvalidConstruction):
            RepositorySQLModel(None, Persona)

    def test_modelo_nulo(self, engine):
        with pytest.raises(InvalidConstruction):
            RepositorySQLModel(engine, None)

    def test_modelo_sin_descriptor(self, engine):
        with pytest.raises(InvalidConstruction) as exc:
            RepositorySQLModel(engine, dict)
        assert exc.value.details["modelo"] == "dict"


class TestRepositoryPersona:

    def test_vacio(self, repo_persona):
        assert repo_persona.find_all() == []

    def test_create_asigna_id(self, repo_persona):
        persona = nueva_persona("Andrea", "Contreras", "152532873", "acontreras@ucn.cl")

        assert repo_persona.create(persona) is True
        assert persona.id is not None

    def test_rut_duplicado(self, repo_persona):
        repo_persona.create(nueva_persona("Andrea", "Contreras", "152532873", "acontreras@ucn.cl"))
        duplicada = nueva_persona("Andrea", "Contreras", "152532873", "acontreras@ucn.cl")

        with pytest.raises(ConstraintViolation):
            repo_persona.create(duplicada)

        assert duplicada.id is None
        assert len(repo_persona.find_all()) == 1

    def test_find_by_id(self, repo_persona, diego):
        persona = repo_persona.find_by_id(diego.id)

        assert persona.id == diego.id
        assert persona.nombre == "Diego"
        assert persona.apellido == "Urrutia"
        assert persona.rut == "132204810"
        assert persona.email == "durrutia@ucn.cl"
        assert persona.fichas == []

    def test_find_by_id_no_existe(self, repo_persona):
        assert repo_persona.find_by_id(999) is None
        assert repo_persona.exists(999) is False

    def test_find_all_por_campo(self, repo_persona, diego):
        repo_persona.create(nueva_persona("Andrea", "Contreras", "152532873", "acontreras@ucn.cl"))

        personas = repo_persona.find_all("rut", "152532873")

        assert len(personas) == 1
        assert personas[0].nombre == "Andrea"
        assert repo_persona.find_all("rut", "19") == []

    def test_delete(self, repo_persona, diego):
        assert repo_persona.delete(diego.id) is True
        assert repo_persona.find_by_id(diego.id) is None
        assert repo_persona.find_all() == []

    def test_delete_no_existe(self, repo_persona):
        assert repo_persona.delete(999) is False

    def test_delete_persona_con_fichas(self, repo_persona, diego, firulais):
        with pytest.raises(ConstraintViolation):
            repo_persona.delete(diego.id)

        assert repo_persona.exists(diego.id)


class TestRepositoryFicha:

    def test_create_resuelve_duenio(self, repo_ficha, diego):
        ficha = nueva_ficha(diego)

        assert repo_ficha.create(ficha) is True
        assert ficha.id is not None
        assert ficha.duenio_id == diego.id

    def test_find_by_id(self, repo_ficha, firulais):
        ficha = repo_ficha.find_by_id(firulais.id)

        assert ficha is not None
        assert ficha.numero == firulais.numero
        assert ficha.nombre_paciente == firulais.nombre_paciente
        assert ficha.especie == firulais.especie
        assert ficha.fecha_nacimiento == firulais.fecha_nacimiento
        assert ficha.raza == firulais.raza
        assert ficha.sexo == firulais.sexo
        assert ficha.color == firulais.color
        assert ficha.tipo == firulais.tipo
        assert ficha.duenio_id == firulais.duenio_id

    def test_asociaciones_cargadas(self, repo_ficha, repo_control, diego, firulais):
        repo_control.create(Control(
            fecha=datetime.now(timezone.utc),
            fecha_proximo_control=datetime.now(timezone.utc) + timedelta(days=30),
            temperatura=38.5,
            peso=30.0,
            altura=60.0,
            diagnostico="Todo normal",
            veterinario=diego,
            ficha=firulais,
        ))

        ficha = repo_ficha.find_by_id(firulais.id)

        assert ficha.duenio is not None
        assert ficha.duenio.rut == "132204810"
        assert len(ficha.controles) == 1
        assert ficha.controles[0].diagnostico == "Todo normal"

    def test_controles_en_orden(self, repo_ficha, repo_control, diego, firulais):
        for diagnostico in ("Primero", "Segundo", "Tercero"):
            repo_control.create(Control(
                fecha=datetime.now(timezone.utc),
                fecha_proximo_control=datetime.now(timezone.utc),
                temperatura=38.0,
                peso=30.0,
                altura=60.0,
                diagnostico=diagnostico,
                veterinario=diego,
                ficha=firulais,
            ))

        ficha = repo_ficha.find_by_id(firulais.id)

        assert [c.diagnostico for c in ficha.controles] == ["Primero", "Segundo", "Tercero"]

    def test_duenio_inexistente(self, repo_ficha):
        ficha = nueva_ficha(None, duenio_id=999)

        with pytest.raises(ConstraintViolation):
            repo_ficha.create(ficha)

        assert ficha.id is None
        assert repo_ficha.find_all() == []

    def test_sin_duenio(self, repo_ficha):
        ficha = nueva_ficha(None)

        with pytest.raises(ConstraintViolation):
            repo_ficha.create(ficha)

        assert ficha.id is None

    def test_duenio_sin_guardar(self, repo_ficha):
        ficha = nueva_ficha(nueva_persona())

        with pytest.raises(ConstraintViolation):
            repo_ficha.create(ficha)

    def test_find_all_numero_como_texto(self, repo_ficha, diego, firulais):
        repo_ficha.create(nueva_ficha(diego, numero=456, nombre_paciente="Manchas"))

        fichas = repo_ficha.find_all("numero", "123")

        assert [f.id for f in fichas] == [firulais.id]

    def test_find_all_por_nombre_publico(self, repo_ficha, firulais):
        fichas = repo_ficha.find_all("nombrePaciente", "Firulais")

        assert len(fichas) == 1
        assert fichas[0].duenio.nombre == "Diego"


class TestRepositoryControl:

    def test_round_trip(self, repo_control, diego, firulais):
        chile = timezone(timedelta(hours=-4))
        control = Control(
            fecha=datetime(2020, 4, 21, 10, 15, 30, 125000, tzinfo=chile),
            fecha_proximo_control=datetime(2020, 5, 21, 10, 15, 30, tzinfo=chile),
            temperatura=35.0,
            peso=5.5,
            altura=20.5,
            diagnostico="Todo normal",
            veterinario=diego,
            ficha=firulais,
        )

        assert repo_control.create(control) is True
        control_db = repo_control.find_by_id(control.id)

        assert control_db is not None
        assert control_db.id == control.id
        assert control_db.fecha == control.fecha
        assert control_db.fecha_proximo_control == control.fecha_proximo_control
        assert control_db.fecha.utcoffset() == timedelta(0)
        assert control_db.temperatura == control.temperatura
        assert control_db.peso == control.peso
        assert control_db.altura == control.altura
        assert control_db.diagnostico == control.diagnostico
        assert control_db.veterinario.id == diego.id
        assert control_db.ficha.id == firulais.id

    def test_fecha_sin_zona_se_toma_como_utc(self, repo_control, diego, firulais):
        control = Control(
            fecha=datetime(2020, 4, 21, 10, 15, 30),
            fecha_proximo_control=datetime(2020, 5, 21, 10, 15, 30),
            temperatura=35.0,
            peso=5.5,
            altura=20.5,
            diagnostico="Todo normal",
            veterinario=diego,
            ficha=firulais,
        )
        repo_control.create(control)

        control_db = repo_control.find_by_id(control.id)

        assert control_db.fecha == datetime(2020, 4, 21, 10, 15, 30, tzinfo=timezone.utc)

    def test_delete(self, repo_control, repo_ficha, diego, firulais):
        control = Control(
            fecha=datetime.now(timezone.utc),
            fecha_proximo_control=datetime.now(timezone.utc),
            temperatura=38.0,
            peso=30.0,
            altura=60.0,
            diagnostico="Otitis",
            veterinario=diego,
            ficha=firulais,
        )
        repo_control.create(control)

        assert repo_control.delete(control.id) is True
        assert repo_ficha.find_by_id(firulais.id).controles == []


class TestStoreUnavailable:

    def test_sin_tablas(self):
        engine = crear_engine("sqlite://")
        repo = RepositorySQLModel(engine, Persona)

        with pytest.raises(StoreUnavailable) as exc:
            repo.find_all()

        assert exc.value.original_error is not None
        engine.dispose()

    def test_create_sin_tablas(self):
        engine = crear_engine("sqlite://")
        repo = RepositorySQLModel(engine, Ficha)

        with pytest.raises(StoreUnavailable):
            repo.create(nueva_ficha(None, duenio_id=1))
        engine.dispose()
