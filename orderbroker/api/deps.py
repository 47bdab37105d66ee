# orderbroker/api/deps.py
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from orderbroker.domain.errors import Unauthenticated
from orderbroker.services.notification_service import NotificationQueue
from orderbroker.services.token_service import Principal, decode_token

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="No authorization token provided")
    try:
        return decode_token(credentials.credentials)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_notification_queue(request: Request) -> NotificationQueue:
    return request.app.state.notification_queue
