"""Extension singletons, bound to the app in ``create_app``."""
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()

# Bearer tokens only: there is no cookie session to protect.
login_manager = LoginManager()
login_manager.session_protection = None
