"""
Adaptador de almacenamiento clave-valor

Guarda documentos JSON bajo una clave en la tabla ``kv_store``. Las lecturas
tipadas pasan por un ``TypeAdapter`` de pydantic, de modo que las fechas se
reconstruyen en cada lectura a partir de su forma de texto.
"""
from contextlib import contextmanager
from threading import RLock
from typing import Any, Callable, Iterator, Optional
import json
import logging

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medbox.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class StorageKeys:
    """Claves del espacio de nombres persistido"""

    def __init__(self, namespace: str = "smart_medicine"):
        self.namespace = namespace

    @property
    def boxes(self) -> str:
        return f"{self.namespace}_boxes"

    @property
    def alerts(self) -> str:
        return f"{self.namespace}_alerts"

    @property
    def initialized(self) -> str:
        return f"{self.namespace}_initialized"


class StorageAdapter:
    """Lectura/escritura genérica de documentos JSON"""

    def __init__(self, session_factory: Callable[[], Session], namespace: str = "smart_medicine"):
        self.session_factory = session_factory
        self.keys = StorageKeys(namespace)
        self._lock = RLock()

    @contextmanager
    def transaction(self) -> Iterator["StorageAdapter"]:
        """
        Serializar un ciclo lectura-modificación-escritura completo.

        El lock es reentrante: un servicio puede abrir una transacción y
        llamar al motor de alertas, que abre la suya.
        """
        with self._lock:
            yield self

    def get(self, key: str, default: Any, adapter: Optional[TypeAdapter] = None) -> Any:
        """
        Obtener el valor guardado en ``key``.

        Si la clave no existe, el JSON está corrupto o no cumple el esquema,
        se devuelve ``default``.
        """
        try:
            with self.session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                raw = entry.value if entry is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error leyendo la clave {key}: {e}")
            return default

        if raw is None:
            return default

        try:
            data = json.loads(raw)
            if adapter is not None:
                return adapter.validate_python(data)
            return data
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Contenido inválido en la clave {key}, usando valor por defecto: {e}")
            return default

    def set(self, key: str, value: Any, adapter: Optional[TypeAdapter] = None) -> None:
        """Guardar ``value`` como JSON en ``key``"""
        if adapter is not None:
            value = adapter.dump_python(value, mode="json")
        payload = json.dumps(value)

        with self.session_factory() as session:
            try:
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=payload))
                else:
                    entry.value = payload
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error guardando la clave {key}: {e}")
                raise

    def contains(self, key: str) -> bool:
        """Verificar si existe la clave"""
        with self.session_factory() as session:
            return session.get(KeyValueEntry, key) is not None

    def delete(self, key: str) -> bool:
        """Eliminar la clave; devuelve False si no existía"""
        with self.session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                return False
            session.delete(entry)
            session.commit()
            return True
