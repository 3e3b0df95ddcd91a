"""
存储层基类

提供本地 JSON 文件存储的通用功能：
- JsonBox: 线程安全的键值存储盒（一个 JSON 文件）
- 原子写入（临时文件 + os.replace）
- 损坏文件的检测与重建
- BaseBoxStore: 异步存储层基类，显式初始化
"""

import asyncio
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from .async_utils import run_sync
from .exceptions import StorageCorruptedError, StorageError, StoreNotInitializedError

logger = logging.getLogger(__name__)

T = TypeVar('T')

BOX_FILE_SUFFIX = ".json"


class JsonBox:
    """
    JSON 文件键值存储盒

    文件结构:
        {
            "meta": {"counter": 3},
            "records": {"note_1": {...}, "note_3": {...}}
        }

    - records 保持插入顺序
    - 每次写入都会整体替换文件，单条记录的写入是原子的
    - 写入失败时内存状态保持不变
    """

    def __init__(self, path: Path | str, name: Optional[str] = None):
        self.path = Path(path)
        self.name = name or self.path.stem
        self._lock = threading.RLock()
        self._records: Dict[str, Dict[str, Any]] = {}
        self._meta: Dict[str, Any] = {}
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    # ==================== 打开 / 关闭 ====================

    def open(self) -> None:
        """
        打开存储盒，文件不存在时创建空文件

        Raises:
            StorageCorruptedError: 文件不可读或格式错误
        """
        with self._lock:
            if self._opened:
                return

            if not self.path.exists():
                self._write({}, {})
                self._records, self._meta = {}, {}
                self._opened = True
                logger.info(f"box_created: {self.path}")
                return

            records, meta = self._read()
            self._records, self._meta = records, meta
            self._opened = True
            logger.debug(f"box_opened: {self.name}, records={len(records)}")

    def close(self) -> None:
        """关闭存储盒（数据已写穿，无需刷新）"""
        with self._lock:
            self._opened = False
            self._records = {}
            self._meta = {}

    def delete_from_disk(self) -> None:
        """删除存储文件（包括残留的临时文件）"""
        with self._lock:
            self.close()
            try:
                self.path.unlink(missing_ok=True)
                self._tmp_path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(self.name, f"删除文件失败: {e}", cause=e)

    # ==================== 读取 ====================

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_open()
            value = self._records.get(key)
            return dict(value) if value is not None else None

    def keys(self) -> List[str]:
        with self._lock:
            self._ensure_open()
            return list(self._records.keys())

    def items(self) -> List[Tuple[str, Dict[str, Any]]]:
        """按存储顺序返回所有 (key, value) 副本"""
        with self._lock:
            self._ensure_open()
            return [(k, dict(v)) for k, v in self._records.items()]

    def get_meta(self, key: str, default: Any = None) -> Any:
        with self._lock:
            self._ensure_open()
            return self._meta.get(key, default)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._records

    # ==================== 写入 ====================

    def put(
        self,
        key: str,
        value: Dict[str, Any],
        meta: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        写入一条记录（整体替换），可同时更新元数据

        Args:
            key: 记录键
            value: 记录内容
            meta: 需要合并到元数据的字段
        """
        with self._lock:
            self._ensure_open()
            records = dict(self._records)
            records[key] = dict(value)
            new_meta = {**self._meta, **(meta or {})}
            self._write(records, new_meta)
            self._records, self._meta = records, new_meta

    def patch(self, key: str, fields: Dict[str, Any]) -> bool:
        """
        合并字段到已有记录

        Returns:
            记录是否存在
        """
        with self._lock:
            self._ensure_open()
            if key not in self._records:
                return False
            records = dict(self._records)
            records[key] = {**records[key], **fields}
            self._write(records, self._meta)
            self._records = records
            return True

    def delete(self, key: str) -> bool:
        """
        删除记录

        Returns:
            记录是否存在
        """
        with self._lock:
            self._ensure_open()
            if key not in self._records:
                return False
            records = {k: v for k, v in self._records.items() if k != key}
            self._write(records, self._meta)
            self._records = records
            return True

    # ==================== 内部方法 ====================

    @property
    def _tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def _ensure_open(self) -> None:
        if not self._opened:
            raise StorageError(self.name, "存储盒未打开")

    def _read(self) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, Any]]:
        """读取并校验文件内容"""
        try:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageCorruptedError(self.name, f"文件不可读: {e}", cause=e)

        if not isinstance(data, dict):
            raise StorageCorruptedError(self.name, "根节点不是对象")

        records = data.get("records", {})
        meta = data.get("meta", {})
        if not isinstance(records, dict) or not isinstance(meta, dict):
            raise StorageCorruptedError(self.name, "records/meta 格式错误")

        bad_keys = [k for k, v in records.items() if not isinstance(v, dict)]
        if bad_keys:
            raise StorageCorruptedError(self.name, f"记录格式错误: {bad_keys[:5]}")

        return records, meta

    def _write(self, records: Dict[str, Dict[str, Any]], meta: Dict[str, Any]) -> None:
        """原子写入整个文件"""
        payload = {"meta": meta, "records": records}
        tmp = self._tmp_path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"box_write_failed: {self.name}, {e}")
            raise StorageError(self.name, f"写入失败: {e}", cause=e)


class BaseBoxStore(ABC, Generic[T]):
    """
    存储层基类

    基于 JsonBox 提供异步存储层的通用功能，子类需要实现：
    - box_name: 存储盒名称（文件名）
    - _row_to_entity: 记录转实体的方法

    初始化是显式的：进程启动时 await initialize() 一次，
    之后的操作若发现尚未初始化会直接抛出 StoreNotInitializedError。

    使用示例:
        class NoteStore(BaseBoxStore[Note]):
            box_name = "notes"

            def _row_to_entity(self, key, row) -> Note:
                return Note.from_dict({**row, "id": key})
    """

    # 子类必须定义
    box_name: str = ""

    def __init__(self, data_dir: Path | str, box_name: Optional[str] = None):
        """
        初始化存储层

        Args:
            data_dir: 数据目录（由调用方从 Settings.DATA_DIR 传入）
            box_name: 存储盒名称，默认使用类属性
        """
        self.box_name = box_name or self.box_name
        self.data_dir = Path(data_dir)
        self._box = JsonBox(self.data_dir / f"{self.box_name}{BOX_FILE_SUFFIX}", name=self.box_name)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._box.path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        打开（或创建）存储盒

        文件损坏时删除并重建为空存储，只记录日志不抛出异常。
        重复调用为空操作。
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            try:
                await run_sync(self._box.open)
            except StorageCorruptedError as e:
                logger.warning(f"box_corrupted_recreating: {self.box_name}, {e}")
                await run_sync(self._box.delete_from_disk)
                await run_sync(self._box.open)

            self._on_initialized()
            self._initialized = True
            logger.info(f"store_initialized: {self.box_name}, records={len(self._box)}")

    def close(self) -> None:
        """关闭存储层"""
        self._box.close()
        self._initialized = False

    def _on_initialized(self) -> None:
        """初始化完成后的钩子"""

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError(type(self).__name__)

    # ==================== 抽象方法 ====================

    @abstractmethod
    def _row_to_entity(self, key: str, row: Dict[str, Any]) -> T:
        """
        将存储记录转换为实体对象

        Args:
            key: 记录键
            row: 记录内容（字典格式）

        Returns:
            实体对象
        """
        pass

    # ==================== 通用读取 ====================

    def _all_entities(self) -> List[T]:
        """按存储顺序返回所有实体"""
        return [self._row_to_entity(k, v) for k, v in self._box.items()]

    def count(self) -> int:
        """统计记录数量"""
        self._ensure_initialized()
        return len(self._box)
