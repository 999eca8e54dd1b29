"""Funciones de utilidad para el Blog Service: hash de contraseñas y manejo de JWT."""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from passlib.context import CryptContext
from jose import JWTError, jwt
from dotenv import load_dotenv

# Carga variables de entorno desde .env
load_dotenv()

logger = logging.getLogger(__name__)

# --- Configuración de Seguridad ---
SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not SECRET_KEY:
    logger.warning("JWT_SECRET_KEY no está definida en las variables de entorno. Usando clave insegura por defecto para desarrollo.")
    SECRET_KEY = "clave_secreta_insegura_por_defecto_cambiar_urgentemente"

ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

# Factor de trabajo de bcrypt (2^rounds iteraciones)
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

# bcrypt solo usa los primeros 72 bytes de la contraseña
BCRYPT_MAX_PASSWORD_BYTES = 72

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña plana contra un hash almacenado."""
    return pwd_context.verify(plain_password, hashed_password)

def dummy_verify_password() -> None:
    """Ejecuta una verificación bcrypt de igual coste sin hash real (usuario inexistente)."""
    pwd_context.dummy_verify()

def get_password_hash(password: str) -> str:
    """Genera el hash de una contraseña plana usando bcrypt con sal aleatoria."""
    return pwd_context.hash(password)

# --- Utilidades para Tokens JWT ---
def create_access_token(
    data: Dict,
    secret_key: str = SECRET_KEY,
    algorithm: str = ALGORITHM,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Genera un token de acceso JWT con los datos proporcionados y una marca de tiempo de expiración.

    Args:
        data: Diccionario (payload) a incluir en el token (ej., {'sub': user_id}).
        expires_delta: Duración del token; por defecto ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        String del JWT codificado.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)

def decode_token(token: str, secret_key: str = SECRET_KEY, algorithm: str = ALGORITHM) -> Optional[Dict]:
    """
    Decodifica y valida un token JWT (firma y expiración).

    Returns:
        El diccionario del payload si el token es válido y no ha expirado,
        en caso contrario, None.
    """
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            options={"verify_aud": False, "require_exp": True},
        )
    except JWTError as e:
        logger.warning(f"Fallo en decodificación de token: {e}")
        return None
