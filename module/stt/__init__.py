from log import setup_logger

logger = setup_logger(__name__)

SUPPORTED_FORMATS = (".mp3", ".wav", ".flac", ".m4a")


class STT:
    """Speech-to-text provider: audio bytes in, plain text out"""

    supported_formats = SUPPORTED_FORMATS

    def supports(self, extension: str) -> bool:
        return extension.lower() in self.supported_formats

    async def transcribe(self, audio: bytes, extension: str) -> str:
        raise NotImplementedError("Subclass must implement this method")

    async def close(self):
        pass
