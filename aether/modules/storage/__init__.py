# Project storage module

from aether.modules.storage.project_store import ProjectStore, METADATA_DIR
