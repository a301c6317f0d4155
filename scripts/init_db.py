#!/usr/bin/env python3
"""
Create the users / generated_outputs tables if they do not exist.
Run from the project root: python -m scripts.init_db
"""
from app.db.base import Base
from app.db.session import engine
from app.models import generated_output, user  # noqa: F401  (register tables on Base.metadata)


def main():
    Base.metadata.create_all(bind=engine)
    print("Tables:", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    main()
