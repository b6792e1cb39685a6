STATE_DIR_NAME = ".taskboard"
CONFIG_FILE = "config.yaml"
STORE_FILE = "tasks.yaml"
STORE_LOCK_FILE = "tasks.lock"
ARTIFACTS_DIR = "artifacts"
EVENTS_FILE = "task_events.jsonl"

API_PATH = "/api/hello"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_BASE_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
DEFAULT_CLIENT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"
LOCK_TIMEOUT = 30  # seconds
