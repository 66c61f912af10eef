# plugins/core_persistence/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List
from uuid import UUID


class PersistenceServiceInterface(ABC):
    """
    资产文档的文件系统 I/O。
    它不知道 AssetRecord 模型，只处理 JSON 兼容的字典。
    """

    @abstractmethod
    async def save_asset(self, asset_id: UUID, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def load_all_assets(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def delete_asset(self, asset_id: UUID) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def assets_root_dir(self) -> Path:
        raise NotImplementedError
