# config.py
import os
BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # --- Database ---
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{os.path.join(BASE_DIR, 'gradebook.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Flask-WTF CSRF / Sessions ---
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")  # change later

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # --- Report constants ---
    NO_DATA_PLACEHOLDER = "—"  # em dash shown in empty cells
    INHERIT_COLOR = "inherit"
    TOTAL_DECIMALS = 1

    # Standard report: totals below this are "low performance"
    LOW_PERFORMANCE_THRESHOLD = 60.0
    LOW_PERFORMANCE_LIMIT = 5


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
