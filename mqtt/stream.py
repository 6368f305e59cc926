"""
Re-emit inbound broker messages as server-push records
"""
import asyncio
import json
from typing import AsyncIterator, Dict

from log import setup_logger
from mqtt.utils.helpers import now_ms
from type import InboundMessage

logger = setup_logger(__name__)


def to_push_record(message: InboundMessage) -> Dict[str, str]:
    """
    Format a message as ``{data: JSON-string, id: timestamp-string, type: "message"}``
    """
    data = json.dumps({"topic": message.topic, "message": message.payload}, ensure_ascii=False, default=str)
    return {"data": data, "id": str(now_ms()), "type": "message"}


async def stream_messages(session) -> AsyncIterator[Dict[str, str]]:
    """
    Yield one record per inbound message, in arrival order, until the consumer
    stops iterating. The listener is removed when the generator closes.
    """
    queue: asyncio.Queue = asyncio.Queue()
    dispose = session.on_message(queue.put_nowait)
    logger.debug("Push stream opened")
    try:
        while True:
            message = await queue.get()
            try:
                record = to_push_record(message)
            except (TypeError, ValueError) as e:
                logger.error(f"Error serializing push record: {e}")
                continue
            yield record
    finally:
        dispose()
        logger.debug("Push stream closed")
