# File: reframe/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. Journal tables inherit from this.
Base = declarative_base()
