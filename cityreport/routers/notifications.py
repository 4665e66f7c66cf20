# cityreport/routers/notifications.py
import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from cityreport.core.security import (
    COOKIE_NAME,
    AdminAuthError,
    AdminAuthorization,
    authorize_token,
    get_current_admin,
)
from cityreport.db.session import get_db, SessionLocal
from cityreport.schemas.notification import NotificationListOut, PreferencesIn, PreferencesOut
from cityreport.services import notifications as svc
from cityreport.services.presenters import notification_dict
from cityreport.services.realtime import hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/notifications", tags=["admin-notifications"])


@router.get("", response_model=NotificationListOut)
def list_notifications(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        rows = svc.list_notifications(db, auth.id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching notifications: {e}", exc_info=True)
        return {"items": [], "unread_count": 0, "error": "Failed to load notifications"}
    items = [notification_dict(n) for n in rows]
    return {"items": items, "unread_count": sum(1 for n in items if not n["is_read"])}


@router.patch("/{notification_id}/read")
def mark_read(notification_id: int, db: Session = Depends(get_db),
              auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        found = svc.mark_read(db, auth.id, notification_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error marking notification as read: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update notification")
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"ok": True, "unread_count": svc.unread_count(db, auth.id)}


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        updated = svc.mark_all_read(db, auth.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error marking all notifications as read: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update notifications")
    return {"updated": updated, "unread_count": 0}


@router.get("/settings", response_model=PreferencesOut)
def get_settings(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        return svc.get_preferences(db, auth.id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching preferences: {e}", exc_info=True)
        return svc.DEFAULT_PREFERENCES


@router.put("/settings", response_model=PreferencesOut)
def update_settings(body: PreferencesIn, db: Session = Depends(get_db),
                    auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        return svc.save_preferences(db, auth.id, body.model_dump())
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving preferences: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save preferences")


async def _handle_action(websocket: WebSocket, center: svc.NotificationCenter, message: dict):
    action = message.get("action") if isinstance(message, dict) else None
    try:
        with SessionLocal() as db:
            if action == "mark_read":
                ok = center.mark_read(db, int(message.get("id")))
                await websocket.send_json({"event": "read", "id": message.get("id"), "ok": ok,
                                           "unread_count": center.unread_count})
            elif action == "mark_all_read":
                updated = center.mark_all_read(db)
                await websocket.send_json({"event": "read_all", "updated": updated,
                                           "unread_count": center.unread_count})
            elif action == "refresh":
                center.load(db)
                await websocket.send_json(center.snapshot())
            else:
                await websocket.send_json({"event": "error", "detail": "Unknown action"})
    except (TypeError, ValueError):
        await websocket.send_json({"event": "error", "detail": "Invalid notification id"})
    except SQLAlchemyError as e:
        logger.error(f"Notification action {action} failed: {e}", exc_info=True)
        await websocket.send_json({"event": "error", "detail": "Failed to update notifications"})


@router.websocket("/ws")
async def notification_feed(websocket: WebSocket):
    token = websocket.query_params.get("token") or websocket.cookies.get(COOKIE_NAME)
    with SessionLocal() as db:
        try:
            admin_id = authorize_token(token, db).id
        except AdminAuthError as e:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
            return

    await websocket.accept()
    center = svc.NotificationCenter(admin_id)
    with hub.subscribe(admin_id) as feed:
        with SessionLocal() as db:
            center.load(db)
        await websocket.send_json(center.snapshot())

        receive = asyncio.ensure_future(websocket.receive_json())
        pushed = asyncio.ensure_future(feed.get())
        try:
            while True:
                done, _ = await asyncio.wait({receive, pushed}, return_when=asyncio.FIRST_COMPLETED)
                if pushed in done:
                    payload = pushed.result()
                    center.on_insert(payload)
                    await websocket.send_json({"event": "insert", "notification": payload,
                                               "unread_count": center.unread_count})
                    pushed = asyncio.ensure_future(feed.get())
                if receive in done:
                    try:
                        message = receive.result()
                    except ValueError:
                        await websocket.send_json({"event": "error", "detail": "Invalid message"})
                    else:
                        await _handle_action(websocket, center, message)
                    receive = asyncio.ensure_future(websocket.receive_json())
        except WebSocketDisconnect:
            logger.debug("notification feed for admin %s disconnected", admin_id)
        finally:
            receive.cancel()
            pushed.cancel()
