"""
SURYATRACK Yoga Service Router

Endpoints for posture classification and live Surya Namaskar A tracking.
Clients run pose estimation themselves and post MediaPipe landmarks per frame.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
import logging

from core.websocket import (
    connection_manager,
    WebSocketMessage,
    MessageType,
    session_room
)
from shared.utils import success_response, error_response

from .models import (
    Landmark,
    Posture,
    PostureClassifier,
    PracticeSessionHandler,
    SessionState,
    SURYA_NAMASKAR_A,
    get_posture_classifier,
    get_session_handler,
    translate_posture
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Service instances (singleton pattern)
_classifier: Optional[PostureClassifier] = None
_session_handler: Optional[PracticeSessionHandler] = None


def get_services():
    """Get or initialize service instances."""
    global _classifier, _session_handler
    if _classifier is None:
        _classifier = get_posture_classifier()
    if _session_handler is None:
        _session_handler = get_session_handler()
    return _classifier, _session_handler


# ============= Pydantic Models =============

class LandmarkModel(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


class LandmarkFrame(BaseModel):
    landmarks: List[Optional[LandmarkModel]] = Field(default_factory=list)
    width: Optional[int] = None
    height: Optional[int] = None
    timestamp: Optional[float] = None

    def to_landmarks(self) -> List[Optional[Landmark]]:
        return [
            Landmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility) if lm is not None else None
            for lm in self.landmarks
        ]


class StartSessionRequest(BaseModel):
    user_id: str
    target_rounds: Optional[int] = Field(default=None, ge=1)


# ============= Helpers =============

def _posture_entry(posture: Posture) -> Dict[str, Any]:
    return {
        "id": posture.name.lower(),
        "name": posture.value,
        **translate_posture(posture).to_dict()
    }


def _require_session(session_handler: PracticeSessionHandler, session_id: str):
    session = session_handler.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _raise_on_error(result: Dict[str, Any]) -> Dict[str, Any]:
    if "error" in result:
        raise HTTPException(status_code=400, detail=result["error"])
    return result


# ============= REST Endpoints =============

@router.get("/postures")
async def get_postures():
    """Get the posture catalogue with display names."""
    postures = [_posture_entry(p) for p in Posture]
    return {"postures": postures, "total": len(postures)}


@router.get("/sequence")
async def get_sequence():
    """Get the Surya Namaskar A sequence in practice order."""
    steps = [
        {"index": i, **_posture_entry(posture)}
        for i, posture in enumerate(SURYA_NAMASKAR_A)
    ]
    return {"name": "Surya Namaskar A", "steps": steps, "length": len(steps)}


@router.get("/translate/{posture_name}")
async def translate(posture_name: str):
    """Get display names for a posture identifier."""
    return {"posture": posture_name, **translate_posture(posture_name).to_dict()}


@router.post("/classify")
async def classify_frame(frame: LandmarkFrame):
    """
    Classify a single landmark frame without touching any session.

    Returns the posture together with the joint angles behind it.
    """
    classifier, _ = get_services()

    result = classifier.classify_with_details(frame.to_landmarks(), frame.width, frame.height)

    return {
        **result.to_dict(),
        "posture_names": translate_posture(result.posture).to_dict()
    }


@router.post("/session/start")
async def start_practice_session(request: StartSessionRequest):
    """
    Start a new practice session for real-time tracking.

    Returns a session ID for use with the frame endpoint or WebSocket stream.
    """
    _, session_handler = get_services()

    try:
        session = session_handler.create_session(
            user_id=request.user_id,
            target_rounds=request.target_rounds
        )
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    started = session_handler.start_session(session.session_id)

    return {
        "status": "created",
        "session_id": session.session_id,
        "user_id": request.user_id,
        "target_rounds": request.target_rounds,
        "expected_posture": started["expected_posture"],
        "websocket_url": f"/api/yoga/ws/session/{session.session_id}"
    }


@router.get("/session/{session_id}")
async def get_session_status(session_id: str):
    """Get current tracker state for a session."""
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    return session_handler.get_session_status(session_id)


@router.post("/session/{session_id}/frame")
async def process_session_frame(session_id: str, frame: LandmarkFrame):
    """Classify one frame and advance the session's sequence."""
    _, session_handler = get_services()
    _require_session(session_handler, session_id)

    return session_handler.process_frame(
        session_id,
        frame.to_landmarks(),
        width=frame.width,
        height=frame.height,
        timestamp=frame.timestamp
    )


@router.post("/session/{session_id}/pause")
async def pause_session(session_id: str):
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    return _raise_on_error(session_handler.pause_session(session_id))


@router.post("/session/{session_id}/resume")
async def resume_session(session_id: str):
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    return _raise_on_error(session_handler.resume_session(session_id))


@router.post("/session/{session_id}/reset")
async def reset_session(session_id: str):
    """Restart a session from the first posture."""
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    return session_handler.reset_session(session_id)


@router.post("/session/{session_id}/complete")
async def complete_session(session_id: str):
    """Complete a practice session and get final results."""
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    return session_handler.complete_session(session_id)


@router.delete("/session/{session_id}")
async def delete_session(session_id: str):
    """Discard a session and its tracker state."""
    _, session_handler = get_services()
    _require_session(session_handler, session_id)
    session_handler.cleanup_session(session_id)
    return success_response({"session_id": session_id}, message="Session discarded")


# ============= WebSocket Endpoints =============

@router.websocket("/ws/session/{session_id}")
async def practice_session_stream(websocket: WebSocket, session_id: str):
    """
    Real-time practice tracking.

    Receives `landmarks` messages, replies to every subscriber of the session
    with `pose_update`, plus `cycle_completed` when a round finishes and
    `session_completed` when the target is reached.
    """
    _, session_handler = get_services()

    session = session_handler.get_session(session_id)
    if not session:
        await websocket.accept()
        await websocket.send_text(WebSocketMessage(
            type=MessageType.ERROR,
            payload=error_response(f"Session {session_id} not found", error_code="session_not_found")
        ).to_json())
        await websocket.close()
        return

    try:
        client = await connection_manager.connect(websocket, session.user_id)
    except ConnectionError:
        logger.warning(f"Rejected stream for session {session_id}: server at capacity")
        return

    room = session_room(session_id)
    await connection_manager.subscribe(client.client_id, room)

    if session.state == SessionState.IDLE:
        session_handler.start_session(session_id)

    await connection_manager.send_to_client(client.client_id, WebSocketMessage(
        type=MessageType.CONNECTED,
        payload=session_handler.get_session_status(session_id)
    ))

    async def on_message(client_id: str, message: WebSocketMessage):
        if message.type != MessageType.LANDMARKS.value:
            raise ValueError(f"Unsupported message type: {message.type}")

        frame = LandmarkFrame.model_validate(message.payload or {})
        result = session_handler.process_frame(
            session_id,
            frame.to_landmarks(),
            width=frame.width,
            height=frame.height,
            timestamp=frame.timestamp
        )

        if "error" in result:
            await connection_manager.send_to_client(client_id, WebSocketMessage(
                type=MessageType.ERROR,
                payload=error_response(result["error"])
            ))
            return

        # Paused or completed sessions do not classify the frame
        if "posture" not in result:
            await connection_manager.send_to_client(client_id, WebSocketMessage(
                type=MessageType.ERROR,
                payload=error_response(
                    result.get("message", "Session not active"),
                    error_code=f"session_{result.get('status', 'inactive')}"
                )
            ))
            return

        await connection_manager.broadcast_to_room(room, WebSocketMessage(
            type=MessageType.POSE_UPDATE,
            payload=result
        ))

        if result.get("cycle_completed"):
            await connection_manager.broadcast_to_room(room, WebSocketMessage(
                type=MessageType.CYCLE_COMPLETED,
                payload={
                    "session_id": session_id,
                    "rounds_completed": result["repetition_count"]
                }
            ))

        if result.get("session_completed"):
            await connection_manager.broadcast_to_room(room, WebSocketMessage(
                type=MessageType.SESSION_COMPLETED,
                payload=result.get("summary", {})
            ))

    try:
        while True:
            data = await websocket.receive_text()
            await connection_manager.handle_message(client.client_id, data, on_message)

    except WebSocketDisconnect:
        logger.info(f"Session {session_id} stream disconnected")

    finally:
        await connection_manager.disconnect(client.client_id)
