"""
Handler for recorded voice commands: transcribe, then dispatch as text
"""
import os

from errors import UnsupportedInputFormat
from log import setup_logger
from module.stt import STT
from mqtt.handlers.device import DeviceCommandHandler
from type import CommandOutcome

logger = setup_logger(__name__)


class AudioCommandHandler:
    def __init__(self, transcriber: STT, device_handler: DeviceCommandHandler):
        self.transcriber = transcriber
        self.device_handler = device_handler

    async def handle_audio(self, audio: bytes, extension: str) -> CommandOutcome:
        """
        Transcribe a recorded command and run it

        Args:
            audio: Raw file content
            extension: File extension including the dot (".wav", ".mp3", ...)

        Raises:
            UnsupportedInputFormat: the transcriber does not accept this format
            TranscriptionFailed: the provider could not transcribe the audio
        """
        extension = extension.lower()
        if not self.transcriber.supports(extension):
            logger.warning(f"Rejected audio with unsupported format: {extension}")
            raise UnsupportedInputFormat(extension)

        logger.info(f"Received {len(audio)} bytes of {extension} audio")
        transcription = await self.transcriber.transcribe(audio, extension)
        text = transcription.strip().lower()
        logger.info(f"Transcription: '{text}'")
        return await self.device_handler.handle_command(text)

    async def handle_audio_file(self, path: str) -> CommandOutcome:
        with open(path, "rb") as f:
            audio = f.read()
        return await self.handle_audio(audio, os.path.splitext(path)[1])
