"""Servicio de autenticación: registro, login y verificación de tokens."""

import logging
from datetime import timedelta
from typing import Optional

import blog_service.errors as errors
from blog_service.models import User
from blog_service.stores import CredentialStore
from blog_service.utils import (
    get_password_hash,
    verify_password,
    dummy_verify_password,
    create_access_token,
    decode_token,
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    BCRYPT_MAX_PASSWORD_BYTES,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    Registra usuarios, emite tokens JWT y los valida.

    No guarda estado entre peticiones: recibe el CredentialStore de la petición
    y la configuración de firma al construirse. Los tokens expiran solo por tiempo;
    no hay lista de revocación.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        secret_key: str = SECRET_KEY,
        algorithm: str = ALGORITHM,
        token_ttl: Optional[timedelta] = None,
    ):
        self.credentials = credentials
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.token_ttl = token_ttl if token_ttl is not None else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    @staticmethod
    def _validate(username: str, password: str) -> None:
        if not username or not username.strip():
            raise errors.ValidationError("Username is required")
        if not password:
            raise errors.ValidationError("Password is required")
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise errors.ValidationError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")

    def register(self, username: str, password: str) -> int:
        """
        Crea el usuario y devuelve su id.
        Lanza ValidationError si faltan datos y DuplicateUsername si el username ya existe.
        """
        self._validate(username, password)
        logger.info(f"Intento de registro para username: {username}")

        if self.credentials.find_by_username(username) is not None:
            logger.warning(f"Registro fallido: username {username} ya existe.")
            raise errors.DuplicateUsername()

        try:
            hashed_password = get_password_hash(password)
        except ValueError as e:
            logger.error(f"Error generando hash para {username}: {e}", exc_info=True)
            raise errors.Internal()

        # La restricción UNIQUE decide si dos registros concurrentes chocan.
        user_id = self.credentials.insert(username, hashed_password)
        logger.info(f"Usuario creado con ID: {user_id} para username: {username}")
        return user_id

    def login(self, username: str, password: str) -> str:
        """Devuelve un token firmado si las credenciales son correctas."""
        logger.info(f"Intento de login para usuario: {username}")
        user = self.credentials.find_by_username(username) if username else None

        password_ok = False
        if user is None or not password or len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            # Mismo coste bcrypt que un usuario real, para no delatar si el username existe.
            # bcrypt truncaría a 72 bytes, así que una contraseña más larga nunca coincide.
            dummy_verify_password()
        else:
            password_ok = self._password_matches(password, user.hashed_password)

        if not password_ok:
            logger.warning(f"Login fallido para usuario: {username}")
            raise errors.InvalidCredentials()

        token = self.issue_token(user)
        logger.info(f"Login exitoso para user_id: {user.id}")
        return token

    @staticmethod
    def _password_matches(password: str, hashed_password: str) -> bool:
        try:
            return verify_password(password, hashed_password)
        except ValueError as e:
            # Hash corrupto o contraseña fuera de rango: se trata como credencial inválida
            logger.error(f"Error verificando contraseña: {e}")
            return False

    def issue_token(self, user: User) -> str:
        # 'sub' es el ID del usuario; nunca se incluye el hash.
        token_data = {"sub": str(user.id), "username": user.username}
        return create_access_token(
            token_data,
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_delta=self.token_ttl,
        )

    def decode(self, token: str) -> dict:
        """Payload validado del token, o InvalidToken."""
        payload = decode_token(token, secret_key=self.secret_key, algorithm=self.algorithm) if token else None
        if payload is None or "sub" not in payload:
            logger.warning("Intento de verificación con token inválido, expirado o sin 'sub'.")
            raise errors.InvalidToken()
        try:
            int(payload["sub"])
        except (TypeError, ValueError):
            logger.warning(f"Token con 'sub' no numérico: {payload['sub']!r}")
            raise errors.InvalidToken()
        return payload

    def verify(self, token: str) -> int:
        """Devuelve el id de usuario que afirma el token."""
        return int(self.decode(token)["sub"])

    def authenticate(self, token: str) -> User:
        """verify() más la comprobación de que el usuario sigue existiendo."""
        user_id = self.verify(token)
        user = self.credentials.get(user_id)
        if user is None:
            logger.warning(f"Token válido para user_id {user_id} inexistente.")
            raise errors.InvalidToken()
        return user
