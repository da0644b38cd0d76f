"""Capture today's inventory snapshot for every active store; meant for a daily cron job"""
import sys
from pathlib import Path

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from dotenv import load_dotenv
load_dotenv(dotenv_path=backend_dir / '.env')

from app.core.database import SessionLocal
from app.core.logging_config import setup_logging, get_logger
from app.models.store import Store
from app.repositories.store_scope import StoreContext, StoreRepository
from app.services.snapshots import capture_snapshot

logger = get_logger(__name__)

def capture_all_stores() -> int:
    db = SessionLocal()
    captured = 0
    try:
        for store in db.query(Store).filter(Store.is_active.is_(True)).all():
            repo = StoreRepository(db, StoreContext(store_id=store.id))
            capture_snapshot(repo)
            captured += 1
        logger.info(f"Captured snapshots for {captured} store(s)")
        return captured
    finally:
        db.close()

if __name__ == "__main__":
    setup_logging()
    capture_all_stores()
