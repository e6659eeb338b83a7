from sqlalchemy import create_engine, BigInteger, Integer, MetaData
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from config.settings import settings

# SQLite solo autoincrementa INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_recycle=3600,
    connect_args=_connect_args,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

# Convención de nombres para constraints / índices
convention = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
