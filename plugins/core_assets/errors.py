# plugins/core_assets/errors.py


class AssetsError(Exception):
    """
    资产插件所有错误的基类。

    `weak` 标记“预期内”的错误（访问被拒绝、文件缺失等）：
    它们的消息可以原样展示给最终用户，而不被视为系统故障。
    """
    weak: bool = False


class InvalidDirectiveError(AssetsError):
    """`{#asset ...}` 指令参数格式错误或编码值不受支持。"""
    weak = True


class UnsupportedEncodingError(AssetsError):
    """请求的编码不适用于该资产（例如对非图片/字体使用 dataURI）。"""
    weak = True


class AssetNotFoundError(AssetsError):
    def __init__(self, name: str):
        super().__init__(f"Asset {name} not found")
        self.name = name


class AccessDeniedError(AssetsError):
    weak = True

    def __init__(self, path: str):
        super().__init__(
            f"Request to file {path} denied. Please allow it by setting "
            f"ASSETS_ALLOWED_FILES, e.g. ASSETS_ALLOWED_FILES=**/foo.js"
        )
        self.path = path


class AssetFileNotFoundError(AssetsError):
    weak = True

    def __init__(self, path: str):
        super().__init__(f"Unable to find file {path}")
        self.path = path


class AssetFileAccessError(AssetsError):
    weak = True

    def __init__(self, path: str):
        super().__init__(f"Unable to access file {path}")
        self.path = path
