from fastapi import APIRouter, Depends

from orderbroker.api.deps import get_notification_queue
from orderbroker.services.notification_service import NotificationQueue

router = APIRouter(tags=["health"])


@router.get("/health")
def health(queue: NotificationQueue = Depends(get_notification_queue)):
    return {
        "status": "ok",
        "notification_queue": {
            "running": queue.running,
            "pending": len(queue.store),
        },
    }
