"""Export sinks for assembled context documents."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from logger import logger
from .errors import SinkError, SinkFailure


@dataclass
class ExportResult:
    """Where an export ended up."""
    path: Path
    file_name: str
    fallback_reason: Optional[SinkFailure] = None  # set when saved to the vault root instead


class ExportSink(ABC):
    """Base class for export destinations."""

    @abstractmethod
    async def write(self, file_name: str, text: str) -> ExportResult:
        """Persist text under file_name.

        Raises:
            SinkError: If the text could not be written
        """
        pass


class VaultExportSink(ExportSink):
    """Writes exports into a folder inside the vault.

    The folder is created when missing. If it cannot be created, or the
    path exists but is not a folder, the export goes to the vault root
    instead (unless fallback_to_root is False).
    """

    def __init__(self, vault_root: Path | str, folder_name: str = "", fallback_to_root: bool = True):
        self.vault_root = Path(vault_root)
        self.folder_name = folder_name.strip().strip("/")
        self.fallback_to_root = fallback_to_root

    async def write(self, file_name: str, text: str) -> ExportResult:
        return await asyncio.to_thread(self._write_sync, file_name, text)

    def _write_sync(self, file_name: str, text: str) -> ExportResult:
        target_dir, fallback = self._target_dir()
        path = target_dir / file_name
        location = self.folder_name if target_dir != self.vault_root else "vault root"

        logger.info(f"[Output] Attempting to create context file: {path}")
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError:
            raise SinkError(
                SinkFailure.NAME_COLLISION,
                f'File "{file_name}" already exists in "{location}".',
            ) from None
        except OSError as e:
            logger.error(f"[Output] Error creating context file {path}: {e}")
            raise SinkError(SinkFailure.WRITE_FAILED, f"Error creating context file: {e}") from e

        logger.info(f"[Output] Context file created: {path}")
        return ExportResult(path=path, file_name=file_name, fallback_reason=fallback)

    def _target_dir(self) -> tuple[Path, Optional[SinkFailure]]:
        if not self.folder_name:
            return self.vault_root, None

        folder = self.vault_root / self.folder_name
        if folder.exists() and not folder.is_dir():
            return self._fallback(
                SinkFailure.NOT_A_FOLDER,
                f'Export path "{self.folder_name}" exists but is not a folder.',
            )

        if not folder.exists():
            try:
                folder.mkdir(parents=True)
                logger.info(f"[Output] Created export folder: {self.folder_name}")
            except OSError as e:
                logger.error(f'[Output] Error creating folder "{self.folder_name}": {e}')
                return self._fallback(
                    SinkFailure.FOLDER_MISSING,
                    f'Could not create export folder "{self.folder_name}".',
                )

        return folder, None

    def _fallback(self, reason: SinkFailure, message: str) -> tuple[Path, Optional[SinkFailure]]:
        if not self.fallback_to_root:
            raise SinkError(reason, message)
        logger.warning(f"[Output] {message} Saving to vault root.")
        return self.vault_root, reason
