"""
로깅 시스템
loguru 기반 구조화 로깅

모든 모듈은 get_logger(__name__) 로 얻은 로거에 order_id, supplier_id 등을
bind 해서 사용한다. 인증 정보는 어떤 로그에도 남기지 않는다.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} | {message} | {extra}"

# 에러 로그 파일 보관 기간
ERROR_RETENTION = "30 days"


def _add_file_sinks(log_file: Path, level: str, json_logs: bool, backup_count: int):
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_file),
        level=level,
        format="{message}" if json_logs else FILE_FORMAT,
        serialize=json_logs,
        rotation="100 MB",
        retention=backup_count,
        compression="zip",
        enqueue=True,
    )

    # 주문 실패 추적용 에러 전용 파일
    logger.add(
        str(log_file.with_name(f"{log_file.stem}_error{log_file.suffix}")),
        level="ERROR",
        format=FILE_FORMAT + "\n{exception}",
        rotation="1 day",
        retention=ERROR_RETENTION,
        compression="zip",
        enqueue=True,
    )


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    backup_count: int = 5,
    console_output: bool = True,
):
    """
    로깅 시스템 초기화

    Args:
        log_level: 로그 레벨
        log_file: 로그 파일 경로 (없으면 파일 기록 안 함)
        json_logs: JSON 형식 로그 사용 여부 (프로덕션)
        backup_count: 보관할 로그 파일 개수
        console_output: 콘솔 출력 여부
    """
    level = log_level.upper()

    logger.remove()
    logger.configure(extra={"name": "dropship_engine"})

    if console_output:
        if json_logs:
            logger.add(sys.stdout, level=level, serialize=True)
        else:
            logger.add(sys.stdout, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        _add_file_sinks(Path(log_file), level, json_logs, backup_count)

    logger.debug(f"로깅 초기화: level={level}, json={json_logs}, file={log_file}")


def get_logger(name: str, **context):
    """
    모듈 로거 생성

    Args:
        name: 로거 이름 (보통 __name__)
        **context: 항상 함께 기록할 컨텍스트 (supplier_id 등)

    Returns:
        name 과 컨텍스트가 bind 된 loguru 로거
    """
    return logger.bind(name=name, **context)
