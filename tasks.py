import logging

from celery_worker import celery_app
from dependencies import FCM_ENABLED, get_pipeline
from exceptions import NotFoundError, PersistenceError, ValidationError
from firebase_init import initialize_firebase
from logging_config import setup_logging

setup_logging()


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def process_submission_task(self, submission_id):
    """Scores a queued submission. Store failures are retried; an already-scored submission is skipped."""
    logging.info(f"[{submission_id}] -> START scoring")
    if FCM_ENABLED:
        initialize_firebase()

    try:
        outcome = get_pipeline().process_submission(submission_id)
    except (ValidationError, NotFoundError) as e:
        logging.warning(f"Task for submission {submission_id} invalid or already processed. Aborting: {e.message}")
        return None
    except PersistenceError as e:
        logging.error(f"Store failure while scoring submission {submission_id}, retrying: {e.message}")
        raise self.retry(exc=e)

    logging.info(f"[{submission_id}] -> DONE status={outcome.submission['status']} "
                 f"points={outcome.pointsAwarded} unlocks={len(outcome.events)}")
    return outcome.model_dump(mode='json')
