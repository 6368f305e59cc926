import os
import dotenv

dotenv.load_dotenv()

# Broker (secure MQTT by default)
BROKER_HOST = os.getenv("BROKER_HOST", "localhost")
BROKER_PORT = int(os.getenv("BROKER_PORT", "8883"))
BROKER_TRANSPORT = os.getenv("BROKER_TRANSPORT", "tcp")
BROKER_USE_TLS = os.getenv("BROKER_USE_TLS", "True").lower() == "true"
BROKER_TLS_INSECURE = os.getenv("BROKER_TLS_INSECURE", "True").lower() == "true"
BROKER_WS_PATH = os.getenv("BROKER_WS_PATH", "/")
MQTT_USER = os.getenv("MQTT_USER", "")
MQTT_PASS = os.getenv("MQTT_PASS", "")
MQTT_CLIENT_PREFIX = os.getenv("MQTT_CLIENT_PREFIX", "home-bridge")
MQTT_KEEPALIVE = int(os.getenv("MQTT_KEEPALIVE", "60"))
MQTT_QOS = int(os.getenv("MQTT_QOS", "1"))

# Session timings, in seconds
MQTT_CONNECT_TIMEOUT = float(os.getenv("MQTT_CONNECT_TIMEOUT", "5"))
MQTT_SUBSCRIBE_RETRY_INTERVAL = float(os.getenv("MQTT_SUBSCRIBE_RETRY_INTERVAL", "1"))
MQTT_ACK_TIMEOUT = float(os.getenv("MQTT_ACK_TIMEOUT", "10"))
MQTT_RECONNECT_MIN_DELAY = int(os.getenv("MQTT_RECONNECT_MIN_DELAY", "1"))
MQTT_RECONNECT_MAX_DELAY = int(os.getenv("MQTT_RECONNECT_MAX_DELAY", "30"))

GLOBAL_LISTENER_ENABLED = os.getenv("GLOBAL_LISTENER_ENABLED", "True").lower() == "true"

# Simulation
SIMULATION_INTERVAL_MS = int(os.getenv("SIMULATION_INTERVAL_MS", "5000"))
SIMULATION_MIN_INTERVAL_MS = int(os.getenv("SIMULATION_MIN_INTERVAL_MS", "1000"))
SENSOR_SIMULATION_INTERVAL_MS = int(os.getenv("SENSOR_SIMULATION_INTERVAL_MS", "15000"))
SENSOR_CHECK_INTERVAL = float(os.getenv("SENSOR_CHECK_INTERVAL", "600"))  # 10 minutes
SENSOR_CHECK_DELAY = float(os.getenv("SENSOR_CHECK_DELAY", "2"))
SIMULATED_SENSOR_TYPES = [
    t.strip() for t in os.getenv("SIMULATED_SENSOR_TYPES", "temperature,humidity").split(",") if t.strip()
]

# Transcription (Groq, OpenAI-compatible API)
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-large-v3-turbo")
TRANSCRIPTION_LANGUAGE = os.getenv("TRANSCRIPTION_LANGUAGE", "en")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
LOG_FILE = os.getenv("LOG_FILE", "app.log")
LOG_FILE_MAX_BYTES = int(os.getenv("LOG_FILE_MAX_BYTES", str(1024 * 1024)))

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
