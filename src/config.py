# src/config.py

import os
import copy
import logging
from typing import Any, Dict, Optional

import yaml

# params.yaml lives in the repository root, one level up from this file
DEFAULT_PARAMS_PATH = os.path.join(os.path.dirname(__file__), '..', 'params.yaml')

ALLOWED_FILE_TYPES = (
    'application/pdf',
    'text/csv',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'image/png',
    'image/jpeg',
    'image/jpg',
)

MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB

DEFAULT_PARAMS: Dict[str, Any] = {
    'llm_config': {
        'model_name': 'gemini-2.5-flash',
        'temperature': 0.4,
        'top_p': 0.95,
        'top_k': 40,
        'max_output_tokens': 8192,
    },
    'upload_config': {
        'allowed_file_types': list(ALLOWED_FILE_TYPES),
        'max_file_size': MAX_FILE_SIZE,
    },
    'reward_config': {
        'tokens_per_analysis': 10,
        'new_user_bonus': 100,
    },
    'database_config': {
        'url': 'sqlite:///health_analyses.db',
        'echo': False,
    },
    'batch_config': {
        'input_dir': 'data/raw_reports',
        'output_path': 'data/processed/findings.csv',
        'wallet_address': 'batch-runner',
    },
}


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_app_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads params.yaml on top of the built-in defaults.

    The path can be overridden with PARAMS_PATH, and the database URL with
    DATABASE_URL. A missing file is not fatal: the defaults are returned.
    """
    config_path = path or os.getenv('PARAMS_PATH', DEFAULT_PARAMS_PATH)
    try:
        with open(config_path, 'r') as f:
            params = _merge(DEFAULT_PARAMS, yaml.safe_load(f) or {})
        logging.info(f"Parameters loaded from {os.path.basename(config_path)}.")
    except FileNotFoundError:
        logging.error(f"❌ params.yaml not found at {config_path}! Falling back to defaults.")
        params = copy.deepcopy(DEFAULT_PARAMS)

    if os.getenv('DATABASE_URL'):
        params['database_config']['url'] = os.environ['DATABASE_URL']
    return params


def format_file_size(size_in_bytes: int) -> str:
    """Formats a byte ceiling the way the API reports it, e.g. 20MB."""
    megabytes = size_in_bytes / 1024 / 1024
    if megabytes.is_integer():
        return f"{int(megabytes)}MB"
    return f"{megabytes:.2f}MB"
