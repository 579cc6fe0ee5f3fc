"""
Locks por clave dentro del proceso.

Serializan el chequeo y la escritura de un mismo turno (court_id, fecha, hora)
o de un mismo partido entre los hilos del worker. Entre procesos la garantía la
dan los índices únicos parciales y el control de versión de la base de datos.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, Iterator


class KeyedLock:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def _acquire_entry(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
                self._users[key] = 0
            self._users[key] += 1
            return lock

    def _release_entry(self, key: Hashable) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._acquire_entry(key)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            self._release_entry(key)

    @contextmanager
    def hold_many(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """Toma varias claves en orden para evitar deadlocks entre llamadas que se cruzan."""
        ordered = sorted(set(keys), key=repr)
        acquired = []
        try:
            for key in ordered:
                lock = self._acquire_entry(key)
                lock.acquire()
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._release_entry(key)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)


# Instancias globales compartidas por los servicios
window_locks = KeyedLock()
match_locks = KeyedLock()
