"""
Acceso a datos del Blog Service.

CredentialStore guarda usuarios y hashes; ContentStore guarda posts y comentarios.
Ambos reciben la sesión de SQLAlchemy de la petición y traducen los errores de la
base de datos a las excepciones de blog_service.errors.
"""

import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import blog_service.errors as errors
from blog_service.models import User, Post, Comment
from blog_service.schemas import PostRead, CommentRead

logger = logging.getLogger(__name__)


class CredentialStore:
    """Usuarios y sus credenciales. La unicidad del username la impone la BD."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.username == username).first()
        except SQLAlchemyError as e:
            logger.error(f"Error de BD buscando usuario '{username}': {e}", exc_info=True)
            raise errors.Internal()

    def get(self, user_id: int) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error de BD obteniendo usuario {user_id}: {e}", exc_info=True)
            raise errors.Internal()

    def insert(self, username: str, hashed_password: str) -> int:
        """
        Inserta el usuario y confirma la transacción.
        Una violación de la restricción UNIQUE se traduce a DuplicateUsername.
        """
        new_user = User(username=username, hashed_password=hashed_password)
        try:
            self.db.add(new_user)
            self.db.commit()
            self.db.refresh(new_user)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Registro fallido: el username '{username}' ya existe (restricción UNIQUE).")
            raise errors.DuplicateUsername()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error de BD creando usuario '{username}': {e}", exc_info=True)
            raise errors.Internal()
        return new_user.id


class ContentStore:
    """Posts y comentarios."""

    def __init__(self, db: Session):
        self.db = db

    def _comment_ids(self, post_id: int) -> List[int]:
        stmt = select(Comment.id).where(Comment.post_id == post_id).order_by(Comment.id)
        return list(self.db.execute(stmt).scalars())

    def _to_post_read(self, post: Post) -> PostRead:
        return PostRead(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            created_at=post.created_at,
            comment_ids=self._comment_ids(post.id),
        )

    def _require_user(self, user_id: int) -> None:
        if self.db.get(User, user_id) is None:
            logger.warning(f"Usuario {user_id} no encontrado.")
            raise errors.NotFound("User not found")

    def _require_post(self, post_id: int) -> None:
        if self.db.get(Post, post_id) is None:
            logger.warning(f"Post {post_id} no encontrado.")
            raise errors.NotFound("Post not found")

    def create_post(self, author_id: int, title: str, content: str) -> int:
        try:
            self._require_user(author_id)
            post = Post(title=title, content=content, author_id=author_id)
            self.db.add(post)
            self.db.commit()
            self.db.refresh(post)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error de BD creando post para user_id {author_id}: {e}", exc_info=True)
            raise errors.Internal()
        logger.info(f"Post {post.id} creado por user_id {author_id}")
        return post.id

    def create_comment(self, author_id: int, post_id: int, content: str) -> int:
        """
        Crea el comentario en una sola transacción: o queda guardado y visible
        en la lista del post, o no se guarda nada.
        """
        try:
            self._require_user(author_id)
            self._require_post(post_id)
            comment = Comment(content=content, author_id=author_id, post_id=post_id)
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
        except errors.NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error de BD creando comentario en post {post_id}: {e}", exc_info=True)
            raise errors.Internal()
        logger.info(f"Comentario {comment.id} creado en post {post_id} por user_id {author_id}")
        return comment.id

    def get_post(self, post_id: int) -> Optional[PostRead]:
        try:
            post = self.db.get(Post, post_id)
            if post is None:
                return None
            return self._to_post_read(post)
        except SQLAlchemyError as e:
            logger.error(f"Error de BD obteniendo post {post_id}: {e}", exc_info=True)
            raise errors.Internal()

    def list_posts(self) -> List[PostRead]:
        try:
            posts = self.db.query(Post).order_by(Post.created_at.desc(), Post.id.desc()).all()
            return [self._to_post_read(post) for post in posts]
        except SQLAlchemyError as e:
            logger.error(f"Error de BD listando posts: {e}", exc_info=True)
            raise errors.Internal()

    def get_comment(self, comment_id: int) -> Optional[CommentRead]:
        try:
            comment = self.db.get(Comment, comment_id)
        except SQLAlchemyError as e:
            logger.error(f"Error de BD obteniendo comentario {comment_id}: {e}", exc_info=True)
            raise errors.Internal()
        return CommentRead.model_validate(comment) if comment else None

    def list_comments(self, post_id: int) -> List[CommentRead]:
        try:
            self._require_post(post_id)
            comments = (
                self.db.query(Comment)
                .filter(Comment.post_id == post_id)
                .order_by(Comment.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error de BD listando comentarios del post {post_id}: {e}", exc_info=True)
            raise errors.Internal()
        return [CommentRead.model_validate(c) for c in comments]
