# src/scheduler/tasks.py
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session
from typing import Optional
from config import settings
from content.services import CommentService, PostService
from database import SessionLocal

logger = logging.getLogger(__name__)

_scheduler: Optional[BackgroundScheduler] = None

def purge_orphan_comments():
    """Delete comments left behind by an interrupted post deletion."""
    logger.info("Starting purge_orphan_comments task")
    db: Session = SessionLocal()
    try:
        removed = CommentService.purge_orphan_comments(db)
        if removed:
            logger.warning(f"Removed {removed} orphan comments")
    except Exception as e:
        db.rollback()
        logger.error(f"Error in purge_orphan_comments: {str(e)}", exc_info=True)
    finally:
        db.close()
    logger.info("Finished purge_orphan_comments task")

def reconcile_comment_counts():
    """Repair comment_count values that drifted from the real comment totals."""
    logger.info("Starting reconcile_comment_counts task")
    db: Session = SessionLocal()
    try:
        fixed = PostService.reconcile_comment_counts(db)
        if fixed:
            logger.warning(f"Corrected comment_count on {fixed} posts")
    except Exception as e:
        db.rollback()
        logger.error(f"Error in reconcile_comment_counts: {str(e)}", exc_info=True)
    finally:
        db.close()
    logger.info("Finished reconcile_comment_counts task")

def run_maintenance():
    """Orphans first, so the recount sees the final comment set."""
    purge_orphan_comments()
    reconcile_comment_counts()

def start_scheduler() -> BackgroundScheduler:
    """Start the background scheduler."""
    global _scheduler
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_maintenance, 'interval', minutes=settings.MAINTENANCE_INTERVAL_MINUTES)
    scheduler.start()
    _scheduler = scheduler
    return scheduler

def stop_scheduler():
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
