# plugins/core_assets/encoding.py

import base64
import mimetypes
import re
from typing import Callable, Tuple, Union

from .contracts import EncodingMode

IMAGE_REGEX = re.compile(r"\.(jpeg|jpg|gif|png|svg)$")
FONT_REGEX = re.compile(r"\.(woff|ttf|otf|eot|woff2)$")

# 一些平台的 mimetypes 数据库缺少字体类型
_EXTRA_TYPES = {
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".eot": "application/vnd.ms-fontobject",
    ".svg": "image/svg+xml",
}

_STRING_ESCAPES = str.maketrans({
    '"': '\\"',
    "'": "\\'",
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
})

Escape = Callable[[str, str], str]


def is_image(name: str) -> bool:
    return IMAGE_REGEX.search(name) is not None

def is_font(name: str) -> bool:
    return FONT_REGEX.search(name) is not None


def guess_mime_type(filename: str) -> str:
    for ext, mime in _EXTRA_TYPES.items():
        if filename.lower().endswith(ext):
            return mime
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"

def content_type_header(mime: str) -> str:
    """text/* 类型附加 UTF-8 字符集。"""
    if mime.startswith("text"):
        return f"{mime}; charset=UTF-8"
    return mime


def escape_string(value: str, filename: str = "") -> str:
    """把文本转义为可以安全嵌入脚本字符串字面量中的形式。"""
    return value.translate(_STRING_ESCAPES)

def wrap_data_uri(value: str, filename: str) -> str:
    mime = guess_mime_type(filename)
    charset = "; charset=UTF-8" if mime.startswith("text") else ""
    return f"data:{mime}{charset};base64,{value}"

def _identity(value: str, filename: str = "") -> str:
    return value


def escape_for(mode: EncodingMode) -> Tuple[Escape, EncodingMode]:
    """返回 (转义函数, 底层字节编码)。"""
    if mode == EncodingMode.STRING:
        return escape_string, EncodingMode.UTF8
    if mode == EncodingMode.DATA_URI:
        return wrap_data_uri, EncodingMode.BASE64
    return _identity, mode


def encode_bytes(content: bytes, mode: EncodingMode) -> Union[str, bytes]:
    if mode == EncodingMode.BASE64:
        return base64.b64encode(content).decode("ascii")
    if mode == EncodingMode.UTF8:
        return content.decode("utf-8", errors="replace")
    if mode == EncodingMode.BINARY:
        return content
    raise ValueError(f"'{mode.value}' is not a byte encoding")

def decode_text(value: str, mode: EncodingMode) -> bytes:
    if mode == EncodingMode.BASE64:
        return base64.b64decode(value)
    if mode == EncodingMode.UTF8:
        return value.encode("utf-8")
    raise ValueError(f"'{mode.value}' cannot be decoded back to bytes")


def encode(content: bytes, mode: EncodingMode, filename: str) -> Union[str, bytes]:
    """对资产内容应用完整的编码管线：先字节编码，再转义。"""
    escape, byte_encoding = escape_for(mode)
    encoded = encode_bytes(content, byte_encoding)
    if isinstance(encoded, bytes):
        return encoded
    return escape(encoded, filename)
