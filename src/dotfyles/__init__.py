"""dotfyles - Collect your dotfiles and push them to GitHub."""

from .cli import main
from .config import Config
from .pipeline import Orchestrator, PipelineResult
from .system import Environment
from .utils import get_version

__all__ = [
    "Config",
    "Environment",
    "Orchestrator",
    "PipelineResult",
    "get_version",
    "main",
]
