from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

# Base: clase base para los modelos SQLAlchemy
Base = declarative_base()


class Database:
    """
    Handle explícito del almacén de datos.

    Lo construye la aplicación a partir de la configuración, se conecta en el
    arranque y se cierra en el apagado. Los endpoints lo reciben a través de
    la dependencia `get_db`, nunca como variable global.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def connect(self) -> None:
        if self.engine is not None:
            return

        connect_args = {}
        if self.url.startswith("sqlite"):
            # SQLite + TestClient/uvicorn usan hilos distintos por request
            connect_args["check_same_thread"] = False

        self.engine = create_engine(
            self.url,
            future=True,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            future=True,
        )

        # Sin migraciones: las tablas se crean si no existen
        from app.db import models  # noqa: F401

        Base.metadata.create_all(self.engine, checkfirst=True)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory()
