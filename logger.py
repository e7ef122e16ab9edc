import logging
import os
from dotenv import load_dotenv

# LOG_LEVEL and LOG_FILE_PATH come from the environment (.env supported)
load_dotenv()
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE_PATH', 'escape_room_builder.log')

# --- Handlers ---
handlers = [logging.StreamHandler()]  # terminal
if LOG_FILE:
    # An empty LOG_FILE_PATH turns the file log off
    handlers.append(logging.FileHandler(LOG_FILE, mode='a', encoding='utf-8'))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    handlers=handlers,
)

# Shared by the builder, the store, the API and the authoring server
builder_logger = logging.getLogger("ESCAPE_ROOM_BUILDER")
