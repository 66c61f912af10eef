# plugins/core_persistence/stores.py
import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from backend.core.contracts import HookManager
from plugins.core_assets.contracts import AssetRecord, AssetStoreInterface
from .contracts import PersistenceServiceInterface

logger = logging.getLogger(__name__)


def record_to_document(record: AssetRecord) -> Dict[str, Any]:
    data = record.model_dump(mode='json', exclude={'content'})
    data['content'] = base64.b64encode(record.content).decode('ascii') if record.content is not None else None
    return data

def document_to_record(data: Dict[str, Any]) -> AssetRecord:
    data = dict(data)
    if data.get('content') is not None:
        data['content'] = base64.b64decode(data['content'])
    return AssetRecord.model_validate(data)


class PersistentAssetStore(AssetStoreInterface):
    """
    管理资产记录的持久化和缓存。
    - 读取（find/get）只访问内存缓存。
    - 写入先经过 before_asset_insert / before_asset_update 钩子，再落盘并更新缓存。
    """
    def __init__(self, persistence_service: PersistenceServiceInterface, hook_manager: HookManager):
        self._persistence = persistence_service
        self._hook_manager = hook_manager
        self._cache: Dict[str, AssetRecord] = {}
        # 每个资产名称一把锁，保证写入的原子性
        self._locks: Dict[str, asyncio.Lock] = {}
        logger.info("PersistentAssetStore initialized (cache is empty).")

    def _get_lock(self, name: str) -> asyncio.Lock:
        return self._locks.setdefault(name, asyncio.Lock())

    async def initialize(self):
        logger.info("Pre-loading all asset records from disk into cache...")
        count = 0
        for data in await self._persistence.load_all_assets():
            try:
                record = document_to_record(data)
            except (ValidationError, ValueError) as e:
                logger.warning(f"Skipping invalid asset document: {e}")
                continue
            self._cache[record.name] = record
            count += 1
        logger.info(f"Successfully pre-loaded {count} asset records into cache.")

    @staticmethod
    def _is_visible(record: AssetRecord, principal: Optional[str]) -> bool:
        return principal is None or record.owner is None or record.owner == principal

    async def find(self, any_of: Dict[str, Any], principal: Optional[str] = None) -> List[AssetRecord]:
        return [
            record for record in self._cache.values()
            if self._is_visible(record, principal)
            and any(getattr(record, field, None) == value for field, value in any_of.items())
        ]

    def get(self, name: str) -> Optional[AssetRecord]:
        return self._cache.get(name)

    def values(self) -> List[AssetRecord]:
        return list(self._cache.values())

    async def insert(self, record: AssetRecord) -> AssetRecord:
        record = await self._hook_manager.filter("before_asset_insert", record, raise_errors=True)

        lock = self._get_lock(record.name)
        async with lock:
            if record.name in self._cache:
                raise ValueError(f"Asset with name '{record.name}' already exists.")
            await self._persistence.save_asset(record.id, record_to_document(record))
            self._cache[record.name] = record

        logger.debug(f"Inserted asset '{record.name}'.")
        return record

    async def update(self, name: str, changes: Dict[str, Any]) -> AssetRecord:
        lock = self._get_lock(name)
        async with lock:
            record = self._cache.get(name)
            if record is None:
                raise ValueError(f"Asset '{name}' not found.")

            changes = await self._hook_manager.filter(
                "before_asset_update", dict(changes), raise_errors=True, record=record
            )
            updated = AssetRecord.model_validate({**record.model_dump(), **changes})

            if updated.name != name and updated.name in self._cache:
                raise ValueError(f"Asset with name '{updated.name}' already exists.")

            await self._persistence.save_asset(updated.id, record_to_document(updated))
            self._cache.pop(name, None)
            self._cache[updated.name] = updated

        logger.debug(f"Updated asset '{name}'.")
        return updated

    async def delete(self, name: str) -> None:
        lock = self._get_lock(name)
        async with lock:
            record = self._cache.pop(name, None)
            if record is not None:
                await self._persistence.delete_asset(record.id)
        self._locks.pop(name, None)

    def clear(self) -> None:
        """只清空内存缓存，不触碰磁盘。"""
        self._cache.clear()
        self._locks.clear()
