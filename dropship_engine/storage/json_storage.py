"""
JSON 파일 기반 저장소
개발용으로 DB 없이 로컬 파일에 문서 저장
"""

import json
from pathlib import Path
from threading import Lock

from loguru import logger

from dropship_engine.storage.memory_storage import MemoryStorage


class JSONStorage(MemoryStorage):
    """JSON 파일 기반 저장소 구현

    컬렉션마다 하나의 파일({collection}.json)에 저장한다.
    """

    def __init__(self, base_path: str = "./data"):
        """
        Args:
            base_path: 데이터 저장 경로
        """
        super().__init__()
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._file_lock = Lock()

        self._load_data()

    def _collection_file(self, collection: str) -> Path:
        return self.base_path / f"{collection}.json"

    def _load_data(self):
        """파일에서 데이터 로드"""
        for path in sorted(self.base_path.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self.data[path.stem] = json.load(f)
                logger.info(f"{path.stem} 문서 {len(self.data[path.stem])}개 로드됨")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"{path.name} 로드 실패: {e}")
                self.data[path.stem] = {}

    def _persist(self, collection: str):
        """컬렉션을 파일에 저장"""
        path = self._collection_file(collection)
        tmp_path = path.with_suffix(".json.tmp")
        with self._file_lock:
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(
                        self.data.get(collection, {}),
                        f,
                        ensure_ascii=False,
                        indent=2,
                        default=str,
                    )
                tmp_path.replace(path)
            except OSError as e:
                logger.error(f"{collection} 저장 실패: {e}")
                raise
