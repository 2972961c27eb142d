import json
from datetime import datetime
from typing import List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from config.config import Config

Base = declarative_base()
engine = create_engine(Config.DATABASE_URL)
Session = sessionmaker(bind=engine)

EMPTY_SNAPSHOT = "[]"


def decode_names(raw) -> List[str]:
    """Decode a JSON snapshot into a list of names, or [] if it can't be read"""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def encode_names(names) -> str:
    return json.dumps(list(names or []), ensure_ascii=False)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User(email='{self.email}')>"


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    release_year = Column(String(4), nullable=False)
    language = Column(String(50), nullable=False)
    rating = Column(String(50), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False, default="")
    watch_url = Column(Text, nullable=False, default="")

    # Denormalized snapshot of genre/cast names; read when no join rows exist
    genre_json = Column(Text, nullable=False, default=EMPTY_SNAPSHOT)
    cast_json = Column(Text, nullable=False, default=EMPTY_SNAPSHOT)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    genre_links = relationship(
        "MovieGenre",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="MovieGenre.genre_id",
    )
    cast_links = relationship(
        "MovieCast",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="MovieCast.cast_member_id",
    )

    @property
    def genre(self) -> List[str]:
        if self.genre_links:
            return [link.genre.name for link in self.genre_links]
        return decode_names(self.genre_json)

    @property
    def cast(self) -> List[str]:
        if self.cast_links:
            return [link.cast_member.name for link in self.cast_links]
        return decode_names(self.cast_json)

    def to_dict(self, include_relations: bool = False) -> dict:
        """
        Serialize the movie for the API.

        The default view reads genre/cast from the JSON snapshot only, so listing
        the catalog never walks the join tables.
        """
        if include_relations:
            genre, cast = self.genre, self.cast
        else:
            genre, cast = decode_names(self.genre_json), decode_names(self.cast_json)

        return {
            "id": self.id,
            "name": self.name,
            "release_year": self.release_year,
            "language": self.language,
            "rating": self.rating,
            "description": self.description,
            "image_url": self.image_url,
            "watch_url": self.watch_url,
            "genre": genre,
            "cast": cast,
        }

    def __repr__(self):
        return f"<Movie(name='{self.name}', year={self.release_year or 'N/A'})>"


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False)

    movie_links = relationship("MovieGenre", back_populates="genre")

    def __repr__(self):
        return f"<Genre(name='{self.name}')>"


class CastMember(Base):
    __tablename__ = "cast_members"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)

    movie_links = relationship("MovieCast", back_populates="cast_member")

    def __repr__(self):
        return f"<CastMember(name='{self.name}')>"


class MovieGenre(Base):
    __tablename__ = "movie_genres"

    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True)
    genre_id = Column(Integer, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True)

    movie = relationship("Movie", back_populates="genre_links")
    genre = relationship("Genre", back_populates="movie_links", lazy="joined")

    def __repr__(self):
        return f"<MovieGenre(movie_id={self.movie_id}, genre_id={self.genre_id})>"


class MovieCast(Base):
    __tablename__ = "movie_cast"

    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True)
    cast_member_id = Column(
        Integer, ForeignKey("cast_members.id", ondelete="CASCADE"), primary_key=True
    )

    movie = relationship("Movie", back_populates="cast_links")
    cast_member = relationship("CastMember", back_populates="movie_links", lazy="joined")

    def __repr__(self):
        return f"<MovieCast(movie_id={self.movie_id}, cast_member_id={self.cast_member_id})>"


def init_db():
    """Initialize the database"""
    Base.metadata.create_all(engine)


if __name__ == "__main__":
    init_db()
    print("Database initialized successfully!")
