import os
import yaml
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from todo_sync.api import todos
from todo_sync.client import build_client
from todo_sync.models.config import AppConfig
from todo_sync.utils.logger import configure_logging, logger

# -----------------------------------------------------------------------------
# Load environment variables
# -----------------------------------------------------------------------------
load_dotenv()

# -----------------------------------------------------------------------------
# Load configuration from YAML
# -----------------------------------------------------------------------------
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "config.yaml")
CONFIG_PATH = os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)

def load_config(path=CONFIG_PATH):
    try:
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
            if not cfg:
                raise ValueError("Config file is empty or invalid.")
            return cfg
    except FileNotFoundError:
        logging.error(f"❌ Config not found at {path}")
        raise SystemExit(f"Config not found: {path}")
    except yaml.YAMLError as e:
        logging.error(f"❌ Error parsing {path}: {e}")
        raise SystemExit(f"Error parsing config: {e}")
    except Exception as e:
        logging.error(f"❌ Unexpected error loading config: {e}")
        raise SystemExit(f"Failed to load config: {e}")

config = load_config()

# -----------------------------------------------------------------------------
# Set up logging
# -----------------------------------------------------------------------------
configure_logging(config.get("logging", {}))

# -----------------------------------------------------------------------------
# Client lifecycle: sign in and subscribe on startup, tear down on shutdown
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        client_config = AppConfig.from_env()
    except ValueError as e:
        logger.error(f"❌ Invalid client configuration: {e}")
        raise SystemExit(f"Invalid client configuration: {e}")

    client = build_client(client_config)
    app.state.client = client
    await client.start()
    try:
        yield
    finally:
        await client.stop()

# -----------------------------------------------------------------------------
# Initialize FastAPI
# -----------------------------------------------------------------------------
app_cfg = config.get("app", {})
app = FastAPI(
    title=app_cfg.get("name", "TodoSync"),
    version=app_cfg.get("version", "0.1.0"),
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
allowed_origins = os.getenv("ALLOWED_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
app.include_router(todos.router, tags=["Todos"])

# -----------------------------------------------------------------------------
# Startup log
# -----------------------------------------------------------------------------
logger.info(f"✅ {app_cfg.get('name', 'API')} is starting up!")
