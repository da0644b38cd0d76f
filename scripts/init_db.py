"""Initialize database with default roles and a first store"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.core.database import SessionLocal, engine, Base
from app.models.store import Store
from app.models.user import Role

DEFAULT_ROLES = [
    {"name": "Admin", "description": "Full back-office access"},
    {"name": "Manager", "description": "Purchasing, catalog and reports"},
    {"name": "Staff", "description": "Receiving and order entry"},
]

def init_db(store_name: str = "Demo Store", store_slug: str = "demo-store"):
    """Create tables, default roles and the first store"""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        for role_data in DEFAULT_ROLES:
            if not db.query(Role).filter(Role.name == role_data["name"]).first():
                db.add(Role(**role_data))

        if not db.query(Store).filter(Store.slug == store_slug).first():
            db.add(Store(name=store_name, slug=store_slug))

        db.commit()
        print("Database initialized successfully!")
    except Exception as e:
        print(f"Error initializing database: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    init_db()
