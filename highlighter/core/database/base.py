# File: highlighter/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. Every persisted model (currently just VideoModel) inherits from this.
Base = declarative_base()
