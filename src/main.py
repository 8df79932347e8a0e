"""
Entry point for the person detection server.

Loads layered configuration, sets up logging and serves the FastAPI app with
uvicorn. The detection model loads in the background after startup.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file (overrides config/default.yaml)
    --host / --port: Override server.host / server.port
    --no-preload: Do not load the model at startup (use POST /reload-model)
"""

import argparse
import logging
import sys
from typing import Any, Dict, Optional, Tuple

import uvicorn

from inference.loader import BACKEND_INITIALIZERS
from models.config import Config
from ops.logging import setup_logging
from web.app import create_app
from web.services.config_service import ConfigService

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    - PORT / MODEL_PATH / LOG_LEVEL environment variables
    """
    try:
        return ConfigService.load_effective_config(config_path)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['server', 'model', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Server
    server = config.get('server') or {}
    port = server.get('port', 3000)
    if not isinstance(port, int) or isinstance(port, bool) or not (0 < port < 65536):
        return False, "server.port must be an integer between 1 and 65535"
    if 'max_body_bytes' in server:
        mbb = server['max_body_bytes']
        if not isinstance(mbb, int) or mbb <= 0:
            return False, "server.max_body_bytes must be a positive integer"

    # Model
    model = config.get('model') or {}
    if not isinstance(model.get('path', ''), str) or not model.get('path'):
        return False, "model.path is required"
    backends = model.get('backends', ['cuda', 'cpu'])
    if not isinstance(backends, list) or not backends:
        return False, "model.backends must be a non-empty list"
    for name in backends:
        if name not in BACKEND_INITIALIZERS:
            return False, f"model.backends entries must be one of: {', '.join(BACKEND_INITIALIZERS)}"

    # Detection
    detection = config.get('detection') or {}
    if 'default_confidence' in detection:
        conf = detection['default_confidence']
        if not _is_number(conf) or not (0 <= conf <= 1):
            return False, "detection.default_confidence must be between 0 and 1"
    for key in ('default_max_detections', 'max_detections_limit', 'min_payload_chars'):
        if key in detection:
            value = detection[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                return False, f"detection.{key} must be a positive integer"
    if detection.get('default_max_detections', 5) > detection.get('max_detections_limit', 100):
        return False, "detection.default_max_detections must not exceed detection.max_detections_limit"

    # Presence
    presence = config.get('presence') or {}
    if 'ttl_seconds' in presence and not _is_number(presence['ttl_seconds']):
        return False, "presence.ttl_seconds must be a number"

    # Logging
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Person Detection Server')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Bind address (overrides server.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Listen port (overrides server.port and PORT)')
    parser.add_argument('--no-preload', action='store_true',
                        help='Skip model load at startup')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.host:
        config.setdefault('server', {})['host'] = args.host
    if args.port:
        config.setdefault('server', {})['port'] = args.port

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])

    cfg = Config.from_dict(config)
    logging.info(f"Starting {cfg.server.name} v{cfg.server.version}")
    logging.info(f"Model: {cfg.model.path} (backends: {', '.join(cfg.model.backends)})")

    app = create_app(cfg, preload=False if args.no_preload else None)

    logging.info(f"Server listening on {cfg.server.host}:{cfg.server.port}")
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_config=None)


if __name__ == "__main__":
    main()
