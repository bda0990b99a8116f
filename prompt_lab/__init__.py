"""Prompt Lab - local-first prompt workspace with AI-assisted evaluation and enhancement."""

__version__ = "0.1.0"

from .categories import CategoryIndex, build_forest
from .models import AIActionType, Category, CategoryNode, Prompt, PromptMetadata, User
from .orchestrator import AIActionOrchestrator, ActionOutcome, EditorBuffer, OrchestratorState
from .repository import PromptRepository
from .search import FilterCriteria, filter_prompts
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .workspace import Workspace
