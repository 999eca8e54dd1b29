"""Configuración de la conexión a la base de datos usando SQLAlchemy."""

import os
import logging
from fastapi import HTTPException
from sqlalchemy import create_engine, exc
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

# Configuración del logger
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Carga variables de entorno desde el archivo .env
load_dotenv()


def build_database_url() -> str:
    """
    Devuelve la cadena de conexión a usar.
    DATABASE_URL tiene prioridad; si no está, se arma una URL MariaDB con
    DB_USER/DB_PASS/DB_HOST/DB_NAME; si tampoco, se usa SQLite local.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_vars = {name: os.getenv(name) for name in ("DB_USER", "DB_PASS", "DB_HOST", "DB_NAME")}
    if all(db_vars.values()):
        return f"mysql+pymysql://{db_vars['DB_USER']}:{db_vars['DB_PASS']}@{db_vars['DB_HOST']}/{db_vars['DB_NAME']}"

    missing_vars = [name for name, value in db_vars.items() if not value]
    logger.warning(f"DATABASE_URL no definida y faltan variables {', '.join(missing_vars)}. Usando SQLite local.")
    return "sqlite:///./blog.db"


def create_db_engine(url: str):
    """Crea el motor de SQLAlchemy. SQLite en memoria comparte una única conexión."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    # pool_pre_ping=True ayuda a manejar conexiones inactivas en el pool.
    return create_engine(url, pool_pre_ping=True)


SQLALCHEMY_DATABASE_URL = build_database_url()

try:
    engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
    # Intenta conectar para verificar credenciales y disponibilidad al inicio
    with engine.connect() as connection:
        logger.info("Conexión a la base de datos establecida exitosamente.")
except exc.SQLAlchemyError as e:
    logger.error(f"Error al conectar con la base de datos: {e}", exc_info=True)
    engine = None

# Cada petición web usará su propia sesión.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine) if engine else None

# Clase base para los modelos declarativos (User, Post, Comment).
Base = declarative_base()


# --- Función de Dependencia para FastAPI ---
def get_db():
    """
    Generador de dependencia de FastAPI para obtener una sesión de base de datos.
    Revierte la transacción si la petición falla y cierra siempre la sesión.
    """
    if SessionLocal is None:
        logger.error("La fábrica de sesiones de base de datos no está inicializada.")
        raise HTTPException(status_code=503, detail="Database service unavailable.")

    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
