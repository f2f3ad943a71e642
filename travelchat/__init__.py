def init_db(engine=None):
    """Create tables (simple dev mode)."""
    from travelchat.models import Base

    if engine is None:
        from travelchat.db import engine
    Base.metadata.create_all(bind=engine)
