from impact_flow.db.models import Base
from impact_flow.db.init_db import init_database


def init_db():
    """Initialize the companion service database - create the directory and tables if needed."""
    init_database()
