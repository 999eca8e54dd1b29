"""Define los modelos de las tablas 'users', 'posts' y 'comments' usando SQLAlchemy ORM."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from blog_service.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Modelo SQLAlchemy que representa la tabla 'users'.
    Almacena la información de autenticación de los usuarios.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # La restricción UNIQUE es la que garantiza que dos registros concurrentes
    # con el mismo username no puedan tener éxito a la vez.
    # En MySQL/MariaDB la colación binaria hace la comparación sensible a mayúsculas.
    username = Column(
        String(150).with_variant(String(150, collation="utf8mb4_bin"), "mysql", "mariadb"),
        unique=True,
        index=True,
        nullable=False,
    )

    # Hash bcrypt de la contraseña. Nunca se guarda la contraseña en texto plano.
    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Post(Base):
    """
    Modelo SQLAlchemy que representa la tabla 'posts'.
    La lista de comentarios no se guarda aquí: se obtiene consultando
    'comments' por post_id.
    """
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Comment(Base):
    """Modelo SQLAlchemy que representa la tabla 'comments'."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
