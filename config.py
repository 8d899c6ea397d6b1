"""Global configuration for Context Fetcher."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Vault
VAULT_PATH = os.getenv("VAULT_PATH")

# Folder inside the vault that receives context exports (empty = vault root)
CONTEXT_EXPORT_FOLDER = os.getenv("CONTEXT_EXPORT_FOLDER", "ContextExports")

# Context API
CONTEXT_API_HOST = os.getenv("CONTEXT_API_HOST", "127.0.0.1")
CONTEXT_API_PORT = int(os.getenv("CONTEXT_API_PORT", "8110"))

# Logging (directory is created on first write)
LOG_DIR = Path(os.getenv("CONTEXT_LOG_DIR") or Path(os.getenv("LOCALAPPDATA", ".")) / "context-fetcher" / "logs")
LOG_LEVEL = os.getenv("CONTEXT_LOG_LEVEL", "INFO")
