from sqlalchemy.orm import declarative_base

# SQLAlchemy Base class for models to inherit.
# The tables themselves live in Supabase; this metadata drives alembic
# migrations and the local test store.
Base = declarative_base()
