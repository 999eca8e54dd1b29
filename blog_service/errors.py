"""Excepciones de dominio del Blog Service y su código HTTP asociado."""

from fastapi import status


class BlogError(Exception):
    """
    Base de todos los errores de dominio.
    `status_code` y `message` los usa el traductor de errores en main.py
    para construir la respuesta HTTP.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong!"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(BlogError):
    """Entrada mal formada (campos vacíos, contraseña demasiado larga, etc.)."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DuplicateUsername(BlogError):
    status_code = status.HTTP_409_CONFLICT
    message = "Username already taken"


class InvalidCredentials(BlogError):
    """
    Usuario inexistente o contraseña incorrecta.
    El mensaje es siempre el mismo para no revelar si el usuario existe.
    """
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid"

    def __init__(self):
        super().__init__()


class InvalidToken(BlogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"


class NotFound(BlogError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Internal(BlogError):
    """Fallo inesperado de la base de datos o del hashing."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong!"
