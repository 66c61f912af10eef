# plugins/core_assets/contracts.py

from __future__ import annotations
import os
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- 1. 编码模式 ---

class EncodingMode(str, Enum):
    UTF8 = "utf8"
    BASE64 = "base64"
    STRING = "string"
    LINK = "link"
    DATA_URI = "dataURI"
    # 仅供内部使用（HTTP 内容路由），指令中不可选
    BINARY = "binary"

DIRECTIVE_ENCODINGS = (
    EncodingMode.BASE64,
    EncodingMode.UTF8,
    EncodingMode.LINK,
    EncodingMode.DATA_URI,
    EncodingMode.STRING,
)


# --- 2. 配置 ---

def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in ("1", "true", "yes", "on")

class AssetsOptions(BaseModel):
    allowed_files: List[str] = Field(default_factory=list, description="Glob patterns of files assets may link to.")
    root_directory: Path = Field(default_factory=Path.cwd, description="Base directory for relative links.")
    search_on_disk_if_not_found_in_store: bool = False
    root_url_for_links: Optional[str] = None
    public_access_enabled: bool = False

    @field_validator('allowed_files', mode='before')
    @classmethod
    def split_patterns(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(',') if p.strip()]
        return v

    @classmethod
    def from_env(cls) -> "AssetsOptions":
        return cls(
            allowed_files=os.getenv("ASSETS_ALLOWED_FILES"),
            root_directory=Path(os.getenv("ASSETS_ROOT_DIR") or Path.cwd()),
            search_on_disk_if_not_found_in_store=_env_flag("ASSETS_SEARCH_ON_DISK"),
            root_url_for_links=os.getenv("ASSETS_ROOT_URL_FOR_LINKS") or None,
            public_access_enabled=_env_flag("ASSETS_PUBLIC_ACCESS"),
        )


# --- 3. 数据模型 ---

class AssetRecord(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    shortid: Optional[str] = None
    name: str
    link: Optional[str] = None
    content: Optional[bytes] = None
    modification_date: Optional[datetime] = None
    is_shared_helper: bool = False
    force_update: bool = False
    owner: Optional[str] = None

class Directive(BaseModel):
    asset_name: str
    encoding: EncodingMode = EncodingMode.UTF8
    model_config = ConfigDict(frozen=True)

class LinkedFile(BaseModel):
    content: bytes
    filename: str
    modified: datetime

class ResolvedAsset(BaseModel):
    content: Union[bytes, str]
    filename: str
    modified: Optional[datetime] = None


# --- 4. 请求上下文 ---

class RequestContext(BaseModel):
    """一次渲染/展开调用的上下文：当前主体、基础 URL 和一个可变的数据袋。"""
    principal: Optional[str] = None
    base_url: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

class TemplateSpec(BaseModel):
    content: str = ""
    helpers: Optional[Union[str, Dict[str, Any]]] = None

class RenderRequest(BaseModel):
    template: TemplateSpec = Field(default_factory=TemplateSpec)
    context: RequestContext = Field(default_factory=RequestContext)

class ScriptDefinition(BaseModel):
    script: str


# --- 5. 服务接口契约 ---

class AssetStoreInterface(ABC):
    @abstractmethod
    async def find(self, any_of: Dict[str, Any], principal: Optional[str] = None) -> List[AssetRecord]:
        """返回至少有一个字段与 any_of 中对应值相等的记录。principal 为 None 时不做范围限制。"""
        raise NotImplementedError
    @abstractmethod
    def get(self, name: str) -> Optional[AssetRecord]: raise NotImplementedError
    @abstractmethod
    async def insert(self, record: AssetRecord) -> AssetRecord: raise NotImplementedError
    @abstractmethod
    async def update(self, name: str, changes: Dict[str, Any]) -> AssetRecord: raise NotImplementedError
    @abstractmethod
    async def delete(self, name: str) -> None: raise NotImplementedError
    @abstractmethod
    def clear(self) -> None: raise NotImplementedError

class AssetResolverInterface(ABC):
    @abstractmethod
    async def resolve(self, name: str, encoding: EncodingMode, request: RequestContext) -> ResolvedAsset:
        raise NotImplementedError

class AssetEvaluatorInterface(ABC):
    @abstractmethod
    async def expand(self, text: str, request: RequestContext) -> str:
        raise NotImplementedError
