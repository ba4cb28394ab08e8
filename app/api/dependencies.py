from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependencia para obtener una sesión de base de datos por request.

    La sesión sale del `Database` que la aplicación guardó en `app.state`.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
