# plugins/core_persistence/service.py

import os
import json
import logging
import asyncio
from pathlib import Path
from typing import Dict, Any, List
from uuid import UUID

import aiofiles

from .contracts import PersistenceServiceInterface

logger = logging.getLogger(__name__)

class PersistenceService(PersistenceServiceInterface):
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self._assets_root_dir = self.data_dir / "assets"
        self._assets_root_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"PersistenceService initialized. Assets directory: {self._assets_root_dir.resolve()}")

    @property
    def assets_root_dir(self) -> Path:
        return self._assets_root_dir

    def _get_asset_file(self, asset_id: UUID) -> Path:
        return self._assets_root_dir / f"{asset_id}.json"

    async def save_asset(self, asset_id: UUID, data: Dict[str, Any]) -> None:
        file_path = self._get_asset_file(asset_id)
        json_string = json.dumps(data, indent=2)

        async with aiofiles.open(file_path, mode='w', encoding='utf-8') as f:
            await f.write(json_string)
        logger.debug(f"Persisted asset '{asset_id}' to {file_path}")

    async def load_all_assets(self) -> List[Dict[str, Any]]:
        if not self._assets_root_dir.is_dir():
            return []

        def _sync_read_files() -> List[Dict[str, Any]]:
            documents = []
            for file_path in sorted(self._assets_root_dir.glob("*.json")):
                try:
                    documents.append(json.loads(file_path.read_text(encoding='utf-8')))
                except json.JSONDecodeError as e:
                    logger.error(f"Skipping corrupt asset file {file_path}: {e}")
            return documents

        return await asyncio.to_thread(_sync_read_files)

    async def delete_asset(self, asset_id: UUID) -> None:
        file_path = self._get_asset_file(asset_id)
        try:
            await asyncio.to_thread(os.remove, file_path)
            logger.debug(f"Deleted asset file: {file_path}")
        except FileNotFoundError:
            # 文件已经不存在，目标已经达成
            pass
