import os
import logging
import time
from typing import List, Optional
from fastapi import FastAPI, Depends, HTTPException, status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import OAuth2PasswordBearer
from fastapi.responses import Response, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.orm import Session

# Importaciones locales
from blog_service.db import engine, Base, get_db, SessionLocal
from blog_service.auth import AuthService
from blog_service.stores import CredentialStore, ContentStore
from blog_service.models import User
import blog_service.errors as errors
import blog_service.schemas as schemas

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)

# Configura logger
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", 3000))

# Crea tablas si no existen al iniciar
try:
    if engine is not None:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified/created.")
except Exception as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)


# Inicializa FastAPI
app = FastAPI(
    title="Blog Service",
    description="Handles user registration, authentication, blog posts and comments.",
    version="1.0.0"
)

# --- Métricas Prometheus ---
REQUEST_COUNT = Counter(
    "blog_requests_total",
    "Total requests processed by Blog Service",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "blog_request_latency_seconds",
    "Request latency in seconds for Blog Service",
    ["endpoint"]
)
USER_REGISTERED_COUNT = Counter("blog_users_registered_total", "Usuarios registrados")
POST_CREATED_COUNT = Counter("blog_posts_created_total", "Posts creados")
COMMENT_CREATED_COUNT = Counter("blog_comments_created_total", "Comentarios creados")


def normalize_endpoint(path: str) -> str:
    """/posts/12/comments -> /posts/{id}/comments, para no disparar la cardinalidad."""
    return "/".join("{id}" if part.isdigit() else part for part in path.split("/"))


# --- Middleware para Métricas ---
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    response = None
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
        response = PlainTextResponse(errors.Internal.message, status_code=500)
    finally:
        latency = time.time() - start_time
        endpoint = normalize_endpoint(request.url.path)
        final_status_code = getattr(response, 'status_code', status_code)

        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    return response


# --- Traducción de errores de dominio a respuestas HTTP ---
@app.exception_handler(errors.BlogError)
async def blog_error_handler(request: Request, exc: errors.BlogError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    headers = None
    if isinstance(exc, (errors.InvalidCredentials, errors.InvalidToken)):
        headers = {"WWW-Authenticate": "Bearer"}
    return PlainTextResponse(exc.message, status_code=exc.status_code, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc'] if loc != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    logger.warning(f"Validación fallida en {request.url.path}: {details}")
    return PlainTextResponse(f"Invalid request: {details}", status_code=status.HTTP_400_BAD_REQUEST)


# --- Dependencias ---
def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(CredentialStore(db))


def get_content_store(db: Session = Depends(get_db)) -> ContentStore:
    return ContentStore(db)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """
    Dependencia de FastAPI para rutas protegidas.
    Lee 'Authorization: Bearer <token>' y devuelve el usuario autenticado.
    """
    if not token:
        raise errors.InvalidToken("Missing Authorization header")
    return auth.authenticate(token)


# --- Endpoints de Salud y Métricas ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Exposes application metrics for Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    """Performs a basic health check of the service and its database."""
    if SessionLocal is None:
        raise HTTPException(status_code=503, detail="Database connection error")
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check fallido - Error de BD: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="Database connection error")
    finally:
        db.close()
    return {"status": "ok", "service": "blog_service", "database": "ok"}


# --- Endpoints de Autenticación ---
# Son funciones síncronas: FastAPI las ejecuta en su pool de hilos, así el
# hash bcrypt no bloquea el event loop.

@app.post("/register", status_code=status.HTTP_201_CREATED, response_class=PlainTextResponse, tags=["Authentication"])
def register(credentials: schemas.UserCredentials, auth: AuthService = Depends(get_auth_service)):
    """Registers a new user with username and password."""
    auth.register(credentials.username, credentials.password)
    USER_REGISTERED_COUNT.inc()
    return PlainTextResponse("User created", status_code=status.HTTP_201_CREATED)


@app.post("/login", response_model=schemas.Token, tags=["Authentication"])
def login(credentials: schemas.UserCredentials, auth: AuthService = Depends(get_auth_service)):
    """
    Authenticates a user by username and password.
    Returns a JWT access token upon successful authentication.
    """
    access_token = auth.login(credentials.username, credentials.password)
    user_id = auth.verify(access_token)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user_id": user_id,
        "username": credentials.username,
    }


@app.get("/verify", response_model=schemas.TokenPayload, tags=["Internal"])
def verify(token: str, auth: AuthService = Depends(get_auth_service)):
    """
    Valida un token JWT (pasado como query parameter 'token') y devuelve su payload.
    """
    payload = auth.decode(token)
    return {"sub": payload["sub"], "exp": payload.get("exp"), "username": payload.get("username")}


@app.get("/me", response_model=schemas.UserResponse, tags=["Users"])
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@app.get("/users/{user_id}", response_model=schemas.UserResponse, tags=["Users"])
def get_user_by_id(user_id: int, db: Session = Depends(get_db)):
    """Retorna la información pública del usuario por su ID."""
    user = CredentialStore(db).get(user_id)
    if not user:
        raise errors.NotFound("User not found")
    return user


# --- Endpoints de Posts y Comentarios ---

@app.post("/posts", response_model=schemas.PostRead, status_code=status.HTTP_201_CREATED, tags=["Posts"])
def create_post(
    post_in: schemas.PostCreate,
    current_user: User = Depends(get_current_user),
    content: ContentStore = Depends(get_content_store),
):
    """Crea un post. El autor es el usuario del token."""
    if not post_in.title.strip() or not post_in.content.strip():
        raise errors.ValidationError("Title and content are required")
    post_id = content.create_post(current_user.id, post_in.title, post_in.content)
    POST_CREATED_COUNT.inc()
    return content.get_post(post_id)


@app.get("/posts", response_model=List[schemas.PostRead], tags=["Posts"])
def list_posts(content: ContentStore = Depends(get_content_store)):
    return content.list_posts()


@app.get("/posts/{post_id}", response_model=schemas.PostRead, tags=["Posts"])
def get_post(post_id: int, content: ContentStore = Depends(get_content_store)):
    post = content.get_post(post_id)
    if post is None:
        raise errors.NotFound("Post not found")
    return post


@app.post(
    "/posts/{post_id}/comments",
    response_model=schemas.CommentRead,
    status_code=status.HTTP_201_CREATED,
    tags=["Comments"],
)
def create_comment(
    post_id: int,
    comment_in: schemas.CommentCreate,
    current_user: User = Depends(get_current_user),
    content: ContentStore = Depends(get_content_store),
):
    """Crea un comentario en el post indicado y lo agrega a su lista de comentarios."""
    if not comment_in.content.strip():
        raise errors.ValidationError("Content is required")
    comment_id = content.create_comment(current_user.id, post_id, comment_in.content)
    COMMENT_CREATED_COUNT.inc()
    return content.get_comment(comment_id)


@app.get("/posts/{post_id}/comments", response_model=List[schemas.CommentRead], tags=["Comments"])
def list_comments(post_id: int, content: ContentStore = Depends(get_content_store)):
    return content.list_comments(post_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("blog_service.main:app", host="0.0.0.0", port=PORT)
