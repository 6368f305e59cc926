from openai import AsyncOpenAI, OpenAIError

import config
from errors import TranscriptionFailed, UnsupportedInputFormat
from log import setup_logger
from module.stt import STT

logger = setup_logger(__name__)


class GroqWhisper(STT):
    def __init__(self, api_key=None, base_url=None, model=None, language=None, client=None):
        super().__init__()
        self.model = model or config.TRANSCRIPTION_MODEL
        self.language = language or config.TRANSCRIPTION_LANGUAGE
        self.client = client or AsyncOpenAI(
            api_key=api_key or config.GROQ_API_KEY,
            base_url=base_url or config.GROQ_BASE_URL,
        )

    async def transcribe(self, audio: bytes, extension: str) -> str:
        extension = extension.lower()
        if not self.supports(extension):
            raise UnsupportedInputFormat(extension)

        logger.info(f"Processing audio buffer with format: {extension}")
        try:
            transcription = await self.client.audio.transcriptions.create(
                file=(f"audio{extension}", audio),
                model=self.model,
                language=self.language,
                response_format="json",
                temperature=0.0,
            )
        except OpenAIError as e:
            logger.error(f"Transcription error: {e}")
            raise TranscriptionFailed(str(e)) from e

        logger.info("Transcription successful")
        return transcription.text

    async def close(self):
        await self.client.close()
