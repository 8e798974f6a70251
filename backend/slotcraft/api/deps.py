from collections.abc import Generator

from sqlalchemy.orm import Session

from slotcraft.db.session import SessionLocal
from slotcraft.services.generator_client import GeneratorClient, get_generator_client


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_generator() -> GeneratorClient:
    return get_generator_client()
