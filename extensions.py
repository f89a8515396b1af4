from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Centralised extension instances to avoid circular imports and multiple db objects.

db = SQLAlchemy()
migrate = Migrate()
# Limits and storage come from the RATELIMIT_* config keys at init_app time.
limiter = Limiter(key_func=get_remote_address)
