import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from processed_or_not.api.dependencies import get_progress_broadcaster, get_progress_store
from processed_or_not.domain.models import ProgressEntry, ProgressEvent
from processed_or_not.domain.ports import ProgressStorePort
from processed_or_not.services.input_detector import normalize_key
from processed_or_not.services.progress_broadcaster import ProgressBroadcaster
from processed_or_not.services.progress_store import event_kind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["Progress"])

StoreDep = Annotated[ProgressStorePort, Depends(get_progress_store)]
BroadcasterDep = Annotated[ProgressBroadcaster, Depends(get_progress_broadcaster)]


@router.get("/{key}", response_model=ProgressEntry)
async def get_progress(key: str, store: StoreDep) -> ProgressEntry:
    """
    Polling-Endpoint. 404 bedeutet "noch nicht gestartet oder abgelaufen",
    nicht "Suche fehlgeschlagen".
    """
    entry = store.get(normalize_key(key))
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No search in progress for this key."
        )
    return entry


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/{key}/ws")
async def subscribe_progress(
    websocket: WebSocket,
    key: str,
    store: StoreDep,
    broadcaster: BroadcasterDep,
) -> None:
    """
    Push-Kanal: sendet den aktuellen Stand und danach jedes Progress-Event
    als {type: progress|complete|error, ...}.

    Schließt nach dem Abschluss eines Laufs. Ist der Snapshot bereits ein
    abgeschlossener Lauf, bleibt die Verbindung offen, bis ein neuerer Lauf
    für denselben Key endet oder der Client trennt.
    """
    key = normalize_key(key)
    # Vor accept() registrieren, damit kein Event zwischen Handshake und Snapshot verloren geht
    subscription = broadcaster.subscribe(key)
    disconnect: asyncio.Task[None] | None = None
    try:
        await websocket.accept()
        disconnect = asyncio.create_task(_wait_for_disconnect(websocket))

        # Der Snapshot enthält alles, was während des Handshakes aufgelaufen ist
        subscription.drain()
        snapshot = store.get(key)
        latest_run = 0
        finished_run: int | None = None
        if snapshot is not None:
            await websocket.send_json(
                ProgressEvent(kind=event_kind(snapshot), entry=snapshot).to_message()
            )
            latest_run = snapshot.run_id
            if snapshot.is_complete:
                finished_run = snapshot.run_id

        while True:
            next_message = asyncio.create_task(subscription.queue.get())
            done, _ = await asyncio.wait(
                {next_message, disconnect}, return_when=asyncio.FIRST_COMPLETED
            )
            if disconnect in done:
                next_message.cancel()
                logger.debug("Progress subscriber for '%s' disconnected", key)
                return

            message = next_message.result()
            run_id = message["runId"]
            if run_id < latest_run:
                continue
            latest_run = run_id

            await websocket.send_json(message)
            if message["type"] != "progress" and run_id != finished_run:
                await websocket.close()
                return
    except WebSocketDisconnect:
        logger.debug("Progress subscriber for '%s' disconnected", key)
    finally:
        if disconnect is not None:
            disconnect.cancel()
        broadcaster.unsubscribe(subscription)
