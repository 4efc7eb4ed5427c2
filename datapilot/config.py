"""Configuration loading and defaults.

Reads from config.toml at the project root, with environment variable overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in the package's parent directory (project root)
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env")
load_dotenv()  # also check cwd

# ---------------------------------------------------------------------------
# Load config.toml
# ---------------------------------------------------------------------------

_toml_path = Path(os.getenv("DATAPILOT_CONFIG", str(_project_root / "config.toml")))
_cfg: dict = {}
if _toml_path.exists():
    with open(_toml_path, "rb") as f:
        _cfg = tomllib.load(f)

_server = _cfg.get("server", {})
_models = _cfg.get("models", {})
_pipeline = _cfg.get("pipeline", {})
_telemetry = _cfg.get("telemetry", {})

# ---------------------------------------------------------------------------
# Provider API keys (env-only, never in toml)
# ---------------------------------------------------------------------------

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("GOOGLE_API_KEY", ""))
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

# ---------------------------------------------------------------------------
# Models per agent role
# ---------------------------------------------------------------------------

PLANNER_MODEL = os.getenv("DATAPILOT_PLANNER_MODEL", _models.get("planner", "gemini/gemini-2.5-flash"))
CODER_MODEL = os.getenv("DATAPILOT_CODER_MODEL", _models.get("coder", "gemini/gemini-2.5-pro"))
SUMMARY_MODEL = os.getenv("DATAPILOT_SUMMARY_MODEL", _models.get("summary", "gemini/gemini-2.5-flash"))

PLANNER_TEMPERATURE = float(os.getenv("DATAPILOT_PLANNER_TEMPERATURE", _models.get("planner_temperature", 0.2)))
CODER_TEMPERATURE = float(os.getenv("DATAPILOT_CODER_TEMPERATURE", _models.get("coder_temperature", 0.4)))
SUMMARY_TEMPERATURE = float(os.getenv("DATAPILOT_SUMMARY_TEMPERATURE", _models.get("summary_temperature", 0.5)))
DEFAULT_MAX_TOKENS = int(os.getenv("DATAPILOT_MAX_TOKENS", _models.get("max_tokens", 8192)))

# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

# Pause between steps so downstream consumers can render each one
STEP_DELAY = float(os.getenv("DATAPILOT_STEP_DELAY", _pipeline.get("step_delay", 1.0)))
EVENT_HISTORY_LIMIT = int(os.getenv("DATAPILOT_EVENT_HISTORY", _pipeline.get("event_history", 1000)))

# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------

TICK_INTERVAL = float(os.getenv("DATAPILOT_TICK_INTERVAL", _telemetry.get("tick_interval", 2.0)))
WINDOW_SIZE = int(os.getenv("DATAPILOT_WINDOW_SIZE", _telemetry.get("window_size", 8)))
DRIFT_THRESHOLD = float(os.getenv("DATAPILOT_DRIFT_THRESHOLD", _telemetry.get("drift_threshold", 0.20)))
SUBSCRIBER_QUEUE_SIZE = int(os.getenv("DATAPILOT_SUBSCRIBER_QUEUE", _telemetry.get("subscriber_queue", 1)))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

SERVER_HOST = os.getenv("DATAPILOT_HOST", _server.get("host", "0.0.0.0"))
SERVER_PORT = int(os.getenv("DATAPILOT_PORT", _server.get("port", 3000)))
