"""
Movie catalog API

`python -m movie_catalog.app` upgrades the schema and reconciles the catalog
before serving. When the app is served by a WSGI server instead, run
`flask --app movie_catalog.app init-catalog` once before starting it.
"""

import logging
import os
import re
from datetime import datetime

import click
from flask import Flask, jsonify, request, send_from_directory
from flask import session as flask_session
from sqlalchemy import func
from werkzeug.exceptions import RequestEntityTooLarge

from config.config import Config, configure_logging
from movie_catalog.auth_service import AuthService
from movie_catalog.image_service import ImageService, ImageUploadError
from movie_catalog.models import Movie, Session
from movie_catalog.movie_service import MovieNotFoundError, MovieService, MovieValidationError
from movie_catalog.reconciler import initialize_catalog

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)
app.secret_key = Config.SECRET_KEY

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def get_db_session():
    """Get a new database session"""
    return Session()


def get_image_service():
    return ImageService(upload_root())


def upload_root():
    return os.path.abspath(app.config["UPLOAD_FOLDER"])


def internal_error(message):
    return jsonify({"message": message}), 500


def read_credentials():
    """Pull email/password out of the JSON body; None if malformed"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")

    if not EMAIL_PATTERN.match(email) or len(email) > 100:
        return None
    if len(password) < MIN_PASSWORD_LENGTH:
        return None
    return email, password


def movie_data_from_form(form):
    """Build the movie payload from a multipart form (genre/cast may repeat)"""
    data = {key: form.get(key, "") for key in (
        "name",
        "release_year",
        "language",
        "rating",
        "description",
        "image_url",
        "watch_url",
    )}
    data["genre"] = form.getlist("genre")
    data["cast"] = form.getlist("cast")
    return data


@app.errorhandler(RequestEntityTooLarge)
def request_too_large(error):
    return jsonify({"success": False, "message": "Request is too large"}), 413


# ==========================================
# AUTHENTICATION ROUTES
# ==========================================


@app.route("/api/auth/login", methods=["POST"])
def login():
    credentials = read_credentials()
    if credentials is None:
        return jsonify({"success": False, "message": "Invalid Input"}), 400
    email, password = credentials

    session_db = get_db_session()
    try:
        if not AuthService(session_db).validate_user(email, password):
            return jsonify({"success": False, "message": "Invalid credentials"}), 401

        flask_session.permanent = True
        flask_session["is_admin"] = True
        flask_session["admin_email"] = email
        flask_session["login_time"] = datetime.utcnow().isoformat()
        return jsonify({"success": True, "message": "Login Successful"})
    except Exception as e:
        logger.error(f"Error during login: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal Server Error"}), 500
    finally:
        session_db.close()


@app.route("/api/auth/logout", methods=["POST"])
def logout():
    flask_session.clear()
    return jsonify({"success": True, "message": "Logout Successful"})


@app.route("/api/auth/register", methods=["POST"])
def register():
    credentials = read_credentials()
    if credentials is None:
        return jsonify({"success": False, "message": "Invalid Input"}), 400
    email, password = credentials

    session_db = get_db_session()
    try:
        if AuthService(session_db).create_user(email, password):
            return jsonify({"success": True, "message": "User Created Successfully"})
        return jsonify({"success": False, "message": "User already exists"}), 400
    except Exception as e:
        logger.error(f"Error during registration: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal Server Error"}), 500
    finally:
        session_db.close()


@app.route("/api/auth/check-auth", methods=["GET"])
def check_auth():
    return jsonify({"isAdmin": bool(flask_session.get("is_admin"))})


# ==========================================
# MOVIE ROUTES
# ==========================================


@app.route("/api/movies", methods=["GET"])
def api_get_movies():
    session_db = get_db_session()
    try:
        movies = MovieService(session_db).list_movies()
        return jsonify([movie.to_dict() for movie in movies])
    except Exception as e:
        logger.error(f"Error getting all movies: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies/search", methods=["GET"])
def api_search_movies():
    session_db = get_db_session()
    try:
        query_text = request.args.get("q", "")
        movies = MovieService(session_db).search_movies(query_text)
        return jsonify([movie.to_dict() for movie in movies])
    except Exception as e:
        logger.error(f"Error searching movies: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies/<int:movie_id>", methods=["GET"])
def api_get_movie(movie_id):
    session_db = get_db_session()
    try:
        movie = MovieService(session_db).get_movie(movie_id)
        if not movie:
            return jsonify({"message": "Movie not found"}), 404
        return jsonify(movie.to_dict(include_relations=True))
    except Exception as e:
        logger.error(f"Error getting movie {movie_id}: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies", methods=["POST"])
def api_add_movie():
    session_db = get_db_session()
    try:
        movie = MovieService(session_db).add_movie(request.get_json(silent=True))
        return (
            jsonify({"message": "Movie added successfully", "movie": movie.to_dict(True)}),
            201,
        )
    except MovieValidationError as e:
        return jsonify({"message": "Invalid movie data", "errors": e.errors}), 400
    except Exception as e:
        logger.error(f"Error adding movie: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies/with-image", methods=["POST"])
def api_add_movie_with_image():
    data = movie_data_from_form(request.form)

    saved_image = None

    session_db = get_db_session()
    try:
        image = request.files.get("file")
        if image is not None and image.filename:
            saved_image = get_image_service().save_image(image)
            data["image_url"] = saved_image

        movie = MovieService(session_db).add_movie(data)
        return (
            jsonify({"message": "Movie added successfully", "movie": movie.to_dict(True)}),
            201,
        )
    except ImageUploadError as e:
        return jsonify({"message": str(e)}), 400
    except MovieValidationError as e:
        if saved_image:
            get_image_service().delete_image(saved_image)
        return jsonify({"message": "Invalid movie data", "errors": e.errors}), 400
    except Exception as e:
        logger.error(f"Error adding movie with image: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies/<int:movie_id>", methods=["PUT"])
def api_update_movie(movie_id):
    session_db = get_db_session()
    try:
        MovieService(session_db).update_movie(movie_id, request.get_json(silent=True))
        return jsonify({"message": "Movie updated successfully"})
    except MovieNotFoundError:
        return jsonify({"message": "Movie not found."}), 404
    except MovieValidationError as e:
        return jsonify({"message": "Invalid movie data", "errors": e.errors}), 400
    except Exception as e:
        logger.error(f"Error updating movie {movie_id}: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


@app.route("/api/movies/<int:movie_id>", methods=["DELETE"])
def api_delete_movie(movie_id):
    session_db = get_db_session()
    try:
        MovieService(session_db).delete_movie(movie_id)
        return jsonify({"message": "Movie deleted successfully"})
    except Exception as e:
        logger.error(f"Error deleting movie {movie_id}: {e}", exc_info=True)
        return internal_error("Internal server error")
    finally:
        session_db.close()


# ==========================================
# IMAGE UPLOAD ROUTES
# ==========================================


@app.route("/api/upload/image", methods=["POST"])
def api_upload_image():
    image = request.files.get("file")
    if image is None:
        return jsonify({"success": False, "message": "No file provided"}), 400

    try:
        image_path = get_image_service().save_image(image)
        return jsonify({"success": True, "imagePath": image_path})
    except ImageUploadError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    except Exception as e:
        logger.error(f"Error uploading image: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@app.route("/api/upload/image", methods=["DELETE"])
def api_delete_image():
    image_path = request.args.get("imagePath", "")
    try:
        if get_image_service().delete_image(image_path):
            return jsonify({"success": True, "message": "Image has been deleted successfully"})
        return jsonify({"success": False, "message": "Image not found."}), 404
    except OSError as e:
        logger.error(f"Error deleting image {image_path}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not delete image"}), 500


@app.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_file(filename):
    response = send_from_directory(upload_root(), filename)
    response.headers["Cache-Control"] = "public,max-age=3600"
    return response


# ==========================================
# SYSTEM
# ==========================================


@app.route("/api/health", methods=["GET"])
def api_health():
    """Health check endpoint"""
    session_db = get_db_session()
    try:
        movie_count = session_db.query(func.count(Movie.id)).scalar()
        return jsonify({"status": "healthy", "database": "connected", "movie_count": movie_count})
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return jsonify({"status": "unhealthy", "error": str(e)}), 500
    finally:
        session_db.close()


@app.cli.command("init-catalog")
@click.option("--legacy-file", default=None, help="Legacy movie JSON file")
def init_catalog_command(legacy_file):
    """Upgrade the schema, seed defaults and reconcile the catalog"""
    stats = initialize_catalog(legacy_file)
    click.echo(f"Catalog ready: {stats}")


if __name__ == "__main__":
    configure_logging("app")
    initialize_catalog()
    app.run(debug=True)
