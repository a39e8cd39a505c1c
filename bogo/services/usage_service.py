# bogo/services/usage_service.py
from bogo.celery_worker import celery_app
from bogo.data.database import SessionLocal
from bogo.data.models.bogo_usage import BogoUsageModel
from bogo.repos.usage_repo import UsageRepo
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class UsageService:
    """
    Usage sink for the engine. Recording is handed to Celery so placing
    an order never waits on it.
    """

    @staticmethod
    def record(rule_id: int, order_id: int, user_id: int | None, free_quantity: int):
        record_usage_task.delay(rule_id, order_id, user_id, free_quantity)


@celery_app.task(name="bogo.services.usage_service.record_usage_task")
def record_usage_task(rule_id: int, order_id: int, user_id: int | None, free_quantity: int):
    db = SessionLocal()
    try:
        usage = UsageRepo(db).create_usage(
            BogoUsageModel(
                rule_id=rule_id,
                order_id=order_id,
                user_id=user_id,
                free_quantity=free_quantity,
            )
        )
        logger.info(f"[USAGE] Rule {rule_id}: {free_quantity} free unit(s) on order {order_id}")
        return {"id": usage.id, "rule_id": rule_id, "order_id": order_id}
    finally:
        db.close()
