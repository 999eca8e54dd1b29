"""Modelos Pydantic (schemas) para validación de datos de entrada/salida en el Blog Service."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

# --- Schemas de Usuario ---

class UserCredentials(BaseModel):
    """Cuerpo JSON de /register y /login."""
    username: str = Field(..., min_length=1, description="Nombre de usuario (sensible a mayúsculas)")
    password: str = Field(..., min_length=1)

class UserResponse(BaseModel):
    """Datos públicos de un usuario (excluye el hash de la contraseña)."""
    id: int
    username: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Schemas de Token ---

class Token(BaseModel):
    """Token de acceso JWT devuelto tras un login exitoso."""
    access_token: str
    token_type: str = "bearer"
    user_id: int
    username: str

class TokenPayload(BaseModel):
    """Payload decodificado de un token JWT válido."""
    sub: str
    exp: Optional[int] = None
    username: Optional[str] = None


# --- Schemas de Posts y Comentarios ---

class PostCreate(BaseModel):
    """El autor viene del token, NO del cuerpo."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)

class PostRead(BaseModel):
    id: int
    title: str
    content: str
    author_id: int
    created_at: datetime
    # IDs de comentarios en orden de creación
    comment_ids: List[int] = []

    model_config = ConfigDict(from_attributes=True)

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)

class CommentRead(BaseModel):
    id: int
    content: str
    author_id: int
    post_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
