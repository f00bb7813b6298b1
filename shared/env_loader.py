"""
Environment file loader shared by the web server and tooling.

Candidates are tried in order and the first existing file wins:
1. explicit_path (if provided)
2. ENV_FILE environment variable
3. .env in the component directory
4. .env in the project root

Variables already present in the process environment are never overridden,
so deployment settings take precedence over any file.

Uses python-dotenv for parsing (quotes, multiline values, export prefixes).
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def env_file_candidates(component_dir: Path, explicit_path: Optional[Path] = None) -> List[Path]:
    """Env files to try, highest priority first."""
    candidates = []
    if explicit_path:
        candidates.append(Path(explicit_path))
    env_file_var = os.getenv("ENV_FILE")
    if env_file_var:
        candidates.append(Path(env_file_var))
    candidates.append(Path(component_dir) / ".env")
    candidates.append(PROJECT_ROOT / ".env")
    return candidates


def load_component_env(
    component_dir: Path,
    explicit_path: Optional[Path] = None
) -> Optional[Path]:
    """
    Load the environment file for a component.
    
    Args:
        component_dir: Directory containing the component (e.g., web/server)
        explicit_path: Env file that takes priority over every other candidate
    
    Returns:
        The file that was loaded, or None if no candidate exists
    """
    if explicit_path and not Path(explicit_path).exists():
        logger.warning(f"Explicit env file path does not exist: {explicit_path}")

    for candidate in env_file_candidates(component_dir, explicit_path):
        if candidate.exists():
            load_dotenv(candidate, override=False)
            logger.debug(f"Loaded environment from {candidate}")
            return candidate
    return None
