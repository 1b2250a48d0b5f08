"""Base SQLAlchemy declarative base for all models"""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base


# BIGINT keys on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY,
# so the test database gets plain INTEGER.
BigIntID = BigInteger().with_variant(Integer(), "sqlite")


Base = declarative_base()
