import os
from urllib.parse import quote_plus
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def database_uri():
    """Pick the database URI from the environment"""
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    # MySQL settings from .env
    host = os.getenv('DB_HOST')
    if host:
        user = quote_plus(os.getenv('DB_USER', ''))
        password = quote_plus(os.getenv('DB_PASSWORD', ''))
        port = os.getenv('DB_PORT', '3306')
        name = os.getenv('DB_NAME', 'parking')
        return f'mysql+pymysql://{user}:{password}@{host}:{port}/{name}'

    return f'sqlite:///{os.path.join(basedir, "data", "parking.db")}'


def ensure_sqlite_dir(uri):
    """Create the folder of a file-backed SQLite database"""
    if uri.startswith('sqlite:///'):
        path = os.path.dirname(uri[len('sqlite:///'):])
        if os.path.isabs(path):
            os.makedirs(path, exist_ok=True)


def load_config():
    return {
        'SQLALCHEMY_DATABASE_URI': database_uri(),
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'HOST': os.getenv('HOST', '0.0.0.0'),
        'PORT': int(os.getenv('PORT', 8080)),
        'DEBUG': os.getenv('FLASK_DEBUG', '0') in ('1', 'true', 'True'),
    }
